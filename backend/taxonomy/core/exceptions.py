"""Custom exception classes for the application."""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )


class AlreadyExistsError(HTTPException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{resource} already exists",
        )


class ValidationError(HTTPException):
    def __init__(self, detail: str = "Validation error"):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )


# ── Category tree errors ───────────────────────────


class DuplicateSlugError(AlreadyExistsError):
    """Slug collides with a live sibling under the same parent."""

    def __init__(self, slug: str):
        super().__init__(f'Slug "{slug}" at this level')
        self.slug = slug


class ParentNotFoundError(HTTPException):
    def __init__(self, parent_id=None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Parent category not found",
        )
        self.parent_id = parent_id


class MaxDepthExceededError(ValidationError):
    def __init__(self, max_depth: int):
        super().__init__(
            f"Maximum category depth ({max_depth + 1} levels) exceeded"
        )
        self.max_depth = max_depth


class CyclicMoveError(ValidationError):
    def __init__(self):
        super().__init__("Cannot move category to itself or one of its descendants")
