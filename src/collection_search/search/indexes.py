"""
Index Recommendations

The optimized range scan and store-side sorting only perform well with
matching indexes. Nothing here creates indexes; the recommendations are
logged at startup for operators.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .models import SearchConfig

logger = logging.getLogger("search.indexes")


def recommend_indexes(config: SearchConfig) -> List[Dict[str, Any]]:
    """
    Return one single-field and one composite index per searchable field.
    """
    collections = list(config.searchable_collections) or ["*"]
    recommendations: List[Dict[str, Any]] = []

    for collection in collections:
        for field in config.searchable_fields:
            recommendations.append({
                "collection": collection,
                "kind": "single",
                "fields": [field],
                "supports": "==, >=, < range queries",
            })
            recommendations.append({
                "collection": collection,
                "kind": "composite",
                "fields": [field, "__name__"],
                "supports": "range queries with sorting",
            })

    return recommendations


def log_index_recommendations(config: SearchConfig) -> List[Dict[str, Any]]:
    if not config.searchable_fields:
        logger.warning("No searchable fields configured, skipping index recommendations")
        return []

    recommendations = recommend_indexes(config)
    logger.info("Recommended indexes for optimal search performance:")
    for rec in recommendations:
        logger.info(
            "  %s index on %s (%s): %s",
            rec["kind"],
            rec["collection"],
            ", ".join(rec["fields"]),
            rec["supports"],
        )
    return recommendations
