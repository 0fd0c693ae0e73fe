from estpos.core.config import settings
from estpos.services.estpos_service import EstPos


def get_estpos() -> EstPos:
    """Fresh adapter per request, bound to the configured merchant account."""
    return EstPos(settings.build_account(), config=settings)
