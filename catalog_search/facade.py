"""Search entry point that turns raw request parameters into engine calls."""
from __future__ import annotations

import logging
from datetime import date
from time import perf_counter
from typing import Any, Callable, Dict, List, Mapping

from .config import Settings, settings as default_settings
from .es_client import SearchExecutor
from .models import SearchRequest
from .query import compile_search, compile_suggest

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def _positive_int(value: Any) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _float_or_none(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    logger.warning("Unrecognized boolean %r; using %s", value, default)
    return default


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _properties(raw: Any) -> Dict[str, List[str]]:
    if not isinstance(raw, Mapping):
        return {}
    return {str(name): [str(v) for v in _as_list(values)] for name, values in raw.items()}


def normalize_params(params: Mapping[str, Any], *, config: Settings = default_settings) -> SearchRequest:
    """Convert caller parameters into a :class:`SearchRequest`.

    Recognized keys: ``keywords``, ``sorting``, ``taxon``, ``browse_mode``,
    ``search`` (with ``price.min``, ``price.max`` and ``properties``),
    ``page``, ``per_page`` and ``new_category``. Invalid pagination falls back
    to page 1 and ``config.default_per_page``.
    """

    page = _positive_int(params.get("page")) or 1
    per_page = _positive_int(params.get("per_page")) or config.default_per_page

    fields: Dict[str, Any] = {
        "query": params.get("keywords"),
        "sorting": params.get("sorting"),
        "category_ids": _as_list(params.get("taxon")),
        "browse_mode": _as_bool(params.get("browse_mode"), True),
        "from_": (page - 1) * per_page,
        "size": per_page,
    }

    search = params.get("search")
    if isinstance(search, Mapping) and isinstance(search.get("price"), Mapping):
        price = search["price"]
        fields["price_min"] = _float_or_none(price.get("min"))
        fields["price_max"] = _float_or_none(price.get("max"))
        fields["properties"] = _properties(search.get("properties"))

    if _as_bool(params.get("new_category"), False):
        fields["available_within_days"] = config.new_arrivals_days

    return SearchRequest(**fields)


def compile_params(
    params: Mapping[str, Any],
    today: date,
    *,
    config: Settings = default_settings,
) -> Dict[str, Any]:
    request = normalize_params(params, config=config)
    return compile_search(request, today, include_category_names=config.search_category_names)


class SearchFacade:
    """Compiles requests and forwards them to the search executor.

    Responses are returned exactly as the executor produced them. Executor
    failures propagate to the caller; nothing is retried or cached here.
    """

    def __init__(
        self,
        executor: SearchExecutor,
        *,
        config: Settings = default_settings,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.executor = executor
        self.config = config
        self.clock = clock

    def build_query(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return compile_params(params, self.clock(), config=self.config)

    async def search(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        t0 = perf_counter()
        body = self.build_query(params)
        t1 = perf_counter()
        response = await self.executor.search(self.config.es_index, body)
        t2 = perf_counter()
        logger.info(
            "search keywords=%r index=%s hits=%s build=%.2fms es=%.2fms",
            params.get("keywords"),
            self.config.es_index,
            response.get("hits", {}).get("total"),
            (t1 - t0) * 1000,
            (t2 - t1) * 1000,
        )
        return response

    async def suggest(self, prefix: str, size: int | None = None) -> Dict[str, Any]:
        body = compile_suggest(prefix, size or self.config.suggest_size)
        if not body:
            return {}
        response = await self.executor.search(self.config.es_index, body)
        logger.info("suggest prefix=%r index=%s", prefix, self.config.es_index)
        return response
