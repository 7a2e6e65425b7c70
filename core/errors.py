from typing import Dict, List, Optional


class JobError(Exception):
    code = "job_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(JobError):
    """
    Malformed or missing input.

    Carries per-field messages plus body-level messages, the same
    shape the API returns to clients.
    """

    code = "validation_error"

    def __init__(
        self,
        field_errors: Optional[Dict[str, List[str]]] = None,
        form_errors: Optional[List[str]] = None,
    ):
        self.field_errors = field_errors or {}
        self.form_errors = form_errors or []

        parts = [
            f"{name}: {'; '.join(msgs)}"
            for name, msgs in self.field_errors.items()
        ]
        parts.extend(self.form_errors)
        super().__init__(", ".join(parts) or "Invalid input")

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(field_errors={field: [message]})

    def to_dict(self) -> dict:
        return {
            "formErrors": list(self.form_errors),
            "fieldErrors": {k: list(v) for k, v in self.field_errors.items()},
        }


class NotFoundError(JobError):
    code = "not_found"

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} does not exist")


class StorageError(JobError):
    code = "storage_error"
