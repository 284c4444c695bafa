"""Custom exceptions for the evaluation context with attempt references."""

from typing import Optional


class MalformedResponseError(ValueError):
    """
    Exception raised when the evaluator returned valid JSON in the wrong shape.

    Attributes:
        message: Error description
        raw_response: The response text that failed validation (truncated in the message)
    """

    def __init__(self, message: str, raw_response: Optional[str] = None):
        self.message = message
        self.raw_response = raw_response

        parts = [message]
        if raw_response:
            snippet = raw_response[:200] + "..." if len(raw_response) > 200 else raw_response
            parts.append(f"\nResponse:\n{snippet}")

        super().__init__("\n".join(parts))


class EvaluationAbortedError(Exception):
    """
    Exception raised when an evaluation attempt cannot continue.

    The underlying service or parse error is kept as __cause__.

    Attributes:
        company: Target company
        role: Target role
        stage: Step that failed ("initial" or "verification")
    """

    def __init__(self, company: str, role: str, stage: str, reason: str):
        self.company = company
        self.role = role
        self.stage = stage
        self.reason = reason
        super().__init__(f"Evaluation of {company} - {role} aborted at {stage} stage: {reason}")


class AttemptCancelledError(Exception):
    """Exception raised when an attempt is cancelled or exceeds its deadline."""

    def __init__(self, step: str, reason: str = "cancelled"):
        self.step = step
        self.reason = reason
        super().__init__(f"Attempt {reason} before step '{step}'")


class SourceFactsError(ValueError):
    """Exception raised when the source-of-truth facts file is missing or invalid."""

    pass
