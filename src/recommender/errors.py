"""Error kinds surfaced by the recommendation engine."""


class RecommenderError(Exception):
    """Base exception for engine errors."""


class GraphIntegrityError(RecommenderError):
    """Learning-path prerequisite data is cyclic, dangling or order-inconsistent."""

    def __init__(self, message: str, path_id: str | None = None, step_ids: list[str] | None = None):
        super().__init__(message)
        self.path_id = path_id
        self.step_ids = step_ids or []


class NotFoundError(RecommenderError, LookupError):
    """Unknown user, path, skill, role or mentor id."""

    def __init__(self, kind: str, key: str):
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key


class InvalidRequestError(RecommenderError, ValueError):
    """Request failed validation (bad limits, missing mandatory filters)."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []


class DependencyUnavailableError(RecommenderError):
    """Upstream store/collaborator failed. The engine never retries this itself."""
