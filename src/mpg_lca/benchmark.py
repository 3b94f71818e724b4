import logging
from typing import Iterable, Optional

import pandas as pd

from .exceptions import InvalidInputError
from .models import BenchmarkStats, Material, MaterialBenchmark

logger = logging.getLogger(__name__)

MAX_ALTERNATIVES = 10


def _empty_stats() -> BenchmarkStats:
    return BenchmarkStats(count=0, min_gwp=0.0, max_gwp=0.0, avg_gwp=0.0, median_gwp=0.0, p25=0.0, p75=0.0, p90=0.0)


def benchmark_category(
    materials: Iterable[Material],
    category: str,
    material_id: Optional[str] = None,
    limit: int = 5,
) -> MaterialBenchmark:
    """
    A1-A3 statistics for a material category and lower-carbon alternatives.

    Only materials with a positive gwp_a1_a3 are benchmarked. Percentiles use
    linear interpolation. With material_id, alternatives are the materials of the
    category with a lower GWP than that material; otherwise the lowest-GWP ones.
    Alternatives are sorted by GWP ascending, then quality rating descending.
    """
    if limit is None or limit < 1:
        raise InvalidInputError(f"Benchmark limit must be >= 1, got {limit}")
    limit = min(limit, MAX_ALTERNATIVES)

    materials = list(materials)
    by_id = {m.id: m for m in materials}
    current = by_id.get(material_id) if material_id else None
    if material_id and current is None:
        logger.warning(f"Benchmark material {material_id} not found; listing lowest-GWP materials instead.")
    current_gwp = float(current.gwp_a1_a3) if current is not None and current.gwp_a1_a3 is not None else None

    df = pd.DataFrame(
        [
            {"id": m.id, "gwp": float(m.gwp_a1_a3), "quality_rating": m.quality_rating}
            for m in materials
            if m.category == category and m.gwp_a1_a3 is not None and m.gwp_a1_a3 > 0
        ],
        columns=["id", "gwp", "quality_rating"],
    )

    if df.empty:
        return MaterialBenchmark(category=category, stats=_empty_stats(), current_material_gwp=current_gwp, alternatives=[])

    gwp = df["gwp"]
    stats = BenchmarkStats(
        count=int(gwp.count()),
        min_gwp=float(gwp.min()),
        max_gwp=float(gwp.max()),
        avg_gwp=float(gwp.mean()),
        median_gwp=float(gwp.quantile(0.5)),
        p25=float(gwp.quantile(0.25)),
        p75=float(gwp.quantile(0.75)),
        p90=float(gwp.quantile(0.9)),
    )

    candidates = df
    if current_gwp is not None:
        candidates = df[(df["gwp"] < current_gwp) & (df["id"] != material_id)]
    candidates = candidates.sort_values(["gwp", "quality_rating"], ascending=[True, False], kind="stable")
    alternatives = [by_id[i] for i in candidates["id"].head(limit)]

    return MaterialBenchmark(
        category=category,
        stats=stats,
        current_material_gwp=current_gwp,
        alternatives=alternatives,
    )
