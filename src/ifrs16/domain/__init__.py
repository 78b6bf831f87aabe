"""Domain layer for ifrs16 application."""

__all__ = [
    "LeaseService",
    "PeriodEndService",
    "PostingService",
]


# Services import the database layer, which imports the entities from this
# package, so they are loaded on first access
def __getattr__(name):
    if name == "LeaseService":
        from ifrs16.domain.lease import LeaseService
        return LeaseService
    if name == "PeriodEndService":
        from ifrs16.domain.period_end import PeriodEndService
        return PeriodEndService
    if name == "PostingService":
        from ifrs16.domain.posting import PostingService
        return PostingService
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
