"""
Franchise diversity.
Interleaves title-matched and general results while capping repeats of one franchise.
"""

from typing import Dict, Iterable, List, Optional, Set, Tuple

from loguru import logger

from .models import CatalogEntry, RankedItem


def matches_title(name: str, titles: Iterable[str]) -> bool:
	name_l = (name or "").strip().lower()
	for t in titles:
		tt = (t or "").strip().lower()
		if tt and (name_l == tt or name_l.startswith(tt) or tt in name_l):
			return True
	return False


def split_buckets(ranked: List[RankedItem], titles: List[str]) -> Tuple[List[RankedItem], List[RankedItem]]:
	"""Bucket A: matches a resolved title. Bucket B: everything else. Both in rank order."""
	bucket_a = [r for r in ranked if matches_title(r.entry.name, titles)]
	bucket_b = [r for r in ranked if not matches_title(r.entry.name, titles)]
	bucket_a.sort(key=lambda r: r.rank_key)
	bucket_b.sort(key=lambda r: r.rank_key)
	return bucket_a, bucket_b


class _Bucket:
	"""Cursor over one rank-ordered bucket; items over the cap are passed over."""

	def __init__(self, items: List[RankedItem]):
		self.items = items
		self.pos = 0

	def take(self, counts: Dict[str, int], cap: int) -> Optional[RankedItem]:
		while self.pos < len(self.items):
			item = self.items[self.pos]
			self.pos += 1
			if counts.get(item.franchise_key, 0) < cap:
				return item
		return None


def select(ranked: List[RankedItem], titles: List[str], limit: int, franchise_cap: int = 1) -> List[CatalogEntry]:
	"""
	Build the final list: alternate bucket A and bucket B (A first), at most
	franchise_cap items per franchise. If the buckets run dry before `limit`,
	backfill in rank order (A then B) ignoring the cap.
	"""
	if limit <= 0:
		return []
	bucket_a, bucket_b = split_buckets(ranked, titles)
	cursors = (_Bucket(bucket_a), _Bucket(bucket_b))

	counts: Dict[str, int] = {}
	chosen: List[RankedItem] = []
	turn = 0  # 0 -> A, 1 -> B
	while len(chosen) < limit:
		item = cursors[turn].take(counts, franchise_cap)
		if item is None:
			item = cursors[1 - turn].take(counts, franchise_cap)
		if item is None:
			break
		chosen.append(item)
		counts[item.franchise_key] = counts.get(item.franchise_key, 0) + 1
		turn = 1 - turn

	if len(chosen) < limit:
		chosen_ids: Set[int] = {r.entry.id for r in chosen}
		before = len(chosen)
		for item in bucket_a + bucket_b:
			if item.entry.id in chosen_ids:
				continue
			chosen.append(item)
			chosen_ids.add(item.entry.id)
			if len(chosen) >= limit:
				break
		if len(chosen) > before:
			logger.debug(f"[Diversifier] Backfilled {len(chosen) - before} items ignoring the franchise cap")

	return [r.entry for r in chosen[:limit]]
