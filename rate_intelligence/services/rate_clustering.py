"""
Rate Clustering Service.

Groups competitor rates into price clusters with a single ascending walk:
a new run starts whenever the gap to the previous rate exceeds the proximity
threshold, and only runs with at least two members are kept.

Because rates are sorted before the walk, the result does not depend on the
input order.

Example:
    >>> clusters = identify_rate_clusters([140, 100, 108, 105, 145])
    >>> [(round(c.centerRate, 2), c.memberCount) for c in clusters]
    [(104.33, 3), (142.5, 2)]
"""

from typing import List, Optional, Sequence

import numpy as np

from rate_intelligence.models import RateCluster


# Maximum gap in currency units between neighbouring rates of one cluster
DEFAULT_CLUSTER_THRESHOLD: float = 20.0

# Singleton runs are dropped
MIN_CLUSTER_SIZE: int = 2


def _emit_cluster(run: List[float]) -> Optional[RateCluster]:
    if len(run) < MIN_CLUSTER_SIZE:
        return None
    return RateCluster(
        centerRate=float(np.mean(run)),
        memberCount=len(run),
        memberRates=list(run),
    )


def identify_rate_clusters(
    rates: Sequence[float],
    threshold: float = DEFAULT_CLUSTER_THRESHOLD,
) -> List[RateCluster]:
    """
    Cluster rates by proximity.

    Args:
        rates: Competitor rates in any order.
        threshold: A gap strictly greater than this starts a new cluster.

    Returns:
        Clusters in ascending rate order, each with >= 2 members.
    """
    clusters: List[RateCluster] = []
    current_run: List[float] = []

    for rate in sorted(rates):
        if not current_run or rate - current_run[-1] <= threshold:
            current_run.append(rate)
            continue

        cluster = _emit_cluster(current_run)
        if cluster is not None:
            clusters.append(cluster)
        current_run = [rate]

    cluster = _emit_cluster(current_run)
    if cluster is not None:
        clusters.append(cluster)

    return clusters


def find_rate_cluster(
    rate: float,
    clusters: Sequence[RateCluster],
) -> Optional[RateCluster]:
    """Return the first cluster whose [min, max] member range contains rate."""
    for cluster in clusters:
        if min(cluster.memberRates) <= rate <= max(cluster.memberRates):
            return cluster
    return None
