"""Copy generation endpoint."""

import logging

from fastapi import APIRouter, Depends

from backend.deps import get_generator, require_password
from betfunnels.models import CopyResult, FunnelSpec
from betfunnels.pipeline import CopyGenerator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate-copy", dependencies=[Depends(require_password)])
async def generate_copy(
    spec: FunnelSpec, generator: CopyGenerator = Depends(get_generator)
) -> CopyResult:
    """Generate the full funnel copy for one casino. Errors abort with no partial copy."""
    copy_all = await generator.generate(spec)
    logger.info("Generated copy for %s (%d chars)", spec.casino, len(copy_all))
    return CopyResult(copy_all=copy_all)
