"""Filter compiler: category + raw criteria -> query plan -> matching records."""

import json
import logging
from typing import TYPE_CHECKING, Any, Mapping

from ..categories import get_category
from ..config import CompilerConfig
from ..errors import StoreError
from .filter_rules import build_stages, describe_rules, is_known_param
from .plan import QueryPlan

if TYPE_CHECKING:
    from ..db import ComponentStore

logger = logging.getLogger(__name__)


class FilterCompiler:
    """Compiles filter criteria for one category and runs them on the store.

    Stateless between calls: plans are built per request and never cached,
    so identical criteria always produce identical results.
    """

    def __init__(self, store: "ComponentStore", config: CompilerConfig | None = None):
        """Initialize the compiler.

        Args:
            store: Component store to query (only read from)
            config: Diagnostics settings; defaults to quiet
        """
        self._store = store
        self._config = config or CompilerConfig()

    @property
    def config(self) -> CompilerConfig:
        return self._config

    def compile(self, category: str, criteria: Mapping[str, Any] | None = None) -> QueryPlan:
        """Build the query plan without touching the store.

        Raises:
            CategoryNotFound: if category is not one of the fixed categories
        """
        info = get_category(category)
        criteria = criteria or {}
        ignored = [name for name in criteria if not is_known_param(category, name)]
        if ignored:
            logger.debug(f"Ignoring parameters not filterable for {category}: {ignored}")
        return QueryPlan(category, info.collection, build_stages(category, criteria))

    def query(self, category: str, criteria: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Return the records of a category matching every criterion.

        Criteria that are absent or blank impose no constraint; with none
        left the whole collection is returned. Records come back in the
        store's natural order.

        Raises:
            CategoryNotFound: unknown category (the store is not contacted)
            StoreUnavailable: the store cannot be opened
            QueryExecutionFailure: the store rejected the query
        """
        plan = self.compile(category, criteria)
        return self.execute(plan)

    def execute(self, plan: QueryPlan) -> list[dict[str, Any]]:
        """Run a compiled plan and materialize the results."""
        if plan.is_empty:
            logger.info(f"Fetching all documents from {plan.collection}")
        elif self._config.verbose_diagnostics:
            logger.info(f"Query plan for {plan.collection}: {json.dumps(plan.describe(), ensure_ascii=False)}")

        items = list(self._store.find(plan))
        logger.info(f"Found {len(items)} components in {plan.collection}")

        if not items and not plan.is_empty:
            self._diagnose_empty(plan)
        return items

    def _diagnose_empty(self, plan: QueryPlan) -> None:
        """Log a sample document so filter paths can be checked against real data.

        Purely observational: sampling failures are logged and dropped.
        """
        logger.info(f"No {plan.category} components matched {len(plan.stages)} filter stage(s)")
        if not self._config.verbose_diagnostics:
            return
        try:
            sample = self._store.sample(plan.category, plan.collection)
        except StoreError as e:
            logger.warning(f"Could not sample {plan.collection} for diagnostics: {e}")
            return
        if sample is not None:
            logger.info(f"Sample document structure: {json.dumps(sample, ensure_ascii=False, default=str)}")

    def describe_filters(self, category: str) -> list[dict[str, Any]]:
        """Filter parameters accepted for a category.

        Raises:
            CategoryNotFound: unknown category
        """
        get_category(category)
        return describe_rules(category)
