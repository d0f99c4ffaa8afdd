"""
Model tier fallback policies.

Two policies coexist: text generation walks the whole tier list on any
failure, while image operations only step down a tier when the backend
refuses the selected model.
"""
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Sequence, Tuple, TypeVar

import structlog

from carouselai.core.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def is_authorization_failure(error: BaseException) -> bool:
    """True when ``error`` means the backend refused the model (HTTP 403)."""
    if getattr(error, "is_authorization", False):
        return True

    status = getattr(error, "status", None)
    if status == 403 or status == "PERMISSION_DENIED":
        return True
    if getattr(error, "code", None) == 403:
        return True

    message = getattr(error, "message", None) or str(error)
    return "PERMISSION_DENIED" in message or "403" in message


class FallbackPolicy(ABC):
    """Decides whether a failure at one tier moves on to the next."""

    name: str = "fallback"

    @abstractmethod
    def should_fall_back(self, error: BaseException) -> bool:
        pass


class UnconditionalChain(FallbackPolicy):
    """Any failure retries at the next tier."""

    name = "unconditional"

    def should_fall_back(self, error: BaseException) -> bool:
        return True


class PermissionGatedFallback(FallbackPolicy):
    """Only authorization failures retry at the next tier."""

    name = "permission_gated"

    def should_fall_back(self, error: BaseException) -> bool:
        return is_authorization_failure(error)


def tiers_from(tiers: Sequence[str], start: Optional[str] = None) -> Sequence[str]:
    """Tier list beginning at ``start``.

    A ``start`` model that is not one of the tiers is tried first and then the
    full list follows.
    """
    if not start:
        return list(tiers)
    if start in tiers:
        return list(tiers[tiers.index(start):])
    return [start] + list(tiers)


async def run_with_fallback(
    tiers: Sequence[str],
    policy: FallbackPolicy,
    call: Callable[[str], Awaitable[T]],
    start: Optional[str] = None,
) -> Tuple[T, str]:
    """Run ``call(model)`` over the tier list under ``policy``.

    Returns the first successful result together with the model that produced
    it. When the policy refuses to fall back the error propagates at once;
    when the tiers are exhausted the last error is re-raised.
    """
    candidates = tiers_from(tiers, start)
    if not candidates:
        raise ConfigurationError("No model tiers configured")

    last_error: Optional[BaseException] = None
    for index, model in enumerate(candidates):
        try:
            result = await call(model)
        except Exception as e:
            last_error = e
            has_next = index + 1 < len(candidates)

            if not policy.should_fall_back(e):
                logger.error("model_request_failed", model=model, policy=policy.name, error=str(e))
                raise

            if not has_next:
                logger.error("model_tiers_exhausted", model=model, policy=policy.name, error=str(e))
                raise

            logger.warning(
                "model_fallback",
                policy=policy.name,
                failed_model=model,
                next_model=candidates[index + 1],
                error=str(e),
            )
            continue

        if index > 0:
            logger.info("model_fallback_succeeded", model=model, policy=policy.name)
        return result, model

    # Unreachable: the loop either returns or raises.
    raise last_error  # type: ignore[misc]
