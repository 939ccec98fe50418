"""
Unit tests for IntentResolver: caching, fallback, enrichment and pruning.
"""

import asyncio
from datetime import date

import pytest

from gamescout.cache import MemoryCache
from gamescout.intent_extractor import IntentExtractionError
from gamescout.intent_resolver import IntentResolver, fallback_intent, season_edition

from conftest import FakeExtractor

AUTUMN = date(2025, 10, 1)


def make_resolver(extractor, cache=None, timeout=1.0):
	return IntentResolver(cache or MemoryCache(), extractor, timeout_seconds=timeout, today=lambda: AUTUMN)


@pytest.mark.asyncio
async def test_extractor_answer_is_normalized():
	extractor = FakeExtractor(include=[" Dragon ", "MEDIEVAL", ""], exclude=["Magic"], titles=[" The Witcher 3 "])
	res = await make_resolver(extractor).resolve("medieval dragons, no magic")
	assert not res.from_fallback
	assert res.error is None
	assert res.intent.include == ["dragon", "medieval"]
	assert res.intent.exclude == ["magic"]
	assert res.intent.titles == ["The Witcher 3"]


@pytest.mark.asyncio
async def test_cached_intent_is_reused_even_if_extractor_later_fails():
	extractor = FakeExtractor(include=["space"], titles=["Elite Dangerous"])
	resolver = make_resolver(extractor)

	first = await resolver.resolve("Space Trading")
	extractor.error = IntentExtractionError("LLM down")
	second = await resolver.resolve("  space trading ")

	assert extractor.calls == 1
	assert second.cached
	assert not second.from_fallback
	assert second.intent == first.intent


@pytest.mark.asyncio
async def test_cached_intent_cannot_be_mutated_by_callers():
	resolver = make_resolver(FakeExtractor(include=["racing"]))
	first = await resolver.resolve("racing")
	first.intent.include.append("mutated")
	second = await resolver.resolve("racing")
	assert second.intent.include == ["racing"]


@pytest.mark.asyncio
async def test_fallback_results_are_not_cached(down_extractor):
	resolver = make_resolver(down_extractor)
	await resolver.resolve("police chase")
	await resolver.resolve("police chase")
	assert down_extractor.calls == 2


@pytest.mark.asyncio
async def test_police_chase_falls_back_to_keywords(down_extractor):
	res = await make_resolver(down_extractor).resolve("police chase")
	assert res.from_fallback
	assert res.error == "LLM unavailable"
	assert res.intent.include == ["police", "chase"]
	assert res.intent.titles == []


@pytest.mark.asyncio
async def test_slow_extractor_times_out_to_fallback():
	class SlowExtractor(FakeExtractor):
		async def extract(self, query):
			await asyncio.sleep(5)

	res = await make_resolver(SlowExtractor(), timeout=0.01).resolve("horror game")
	assert res.from_fallback
	assert res.intent.include == ["horror"]


@pytest.mark.asyncio
async def test_missing_extractor_uses_fallback():
	res = await make_resolver(None).resolve("open world rpg")
	assert res.from_fallback
	assert res.intent.include == ["rpg", "open world"]


@pytest.mark.asyncio
async def test_blank_query_is_rejected():
	with pytest.raises(ValueError):
		await make_resolver(FakeExtractor()).resolve("   ")


@pytest.mark.asyncio
async def test_war_queries_add_war_franchises():
	res = await make_resolver(FakeExtractor(include=["war"])).resolve("modern war shooter")
	assert res.intent.include == ["war", "battlefield", "crysis", "arma", "medal of honor", "company of heroes"]


@pytest.mark.asyncio
async def test_warhammer_is_not_a_war_query():
	res = await make_resolver(FakeExtractor(include=["warhammer"])).resolve("warhammer strategy")
	assert res.intent.include == ["warhammer"]


@pytest.mark.asyncio
async def test_fifa_adds_current_season_title():
	res = await make_resolver(FakeExtractor(include=["fifa", "football"])).resolve("fifa")
	assert "ea sports fc" in res.intent.include
	assert res.intent.titles == ["EA SPORTS FC 26"]


@pytest.mark.asyncio
async def test_city_building_adds_city_builder_title():
	res = await make_resolver(FakeExtractor(include=["city", "building"])).resolve("build a city")
	assert "city builder" in res.intent.include
	assert "Cities: Skylines II" in res.intent.titles


@pytest.mark.asyncio
async def test_stop_words_and_duplicates_are_pruned():
	extractor = FakeExtractor(include=["game", "a", "Dragon", "dragon", "video", "rpg"])
	res = await make_resolver(extractor).resolve("dragon rpg game")
	assert res.intent.include == ["dragon", "rpg"]


def test_fallback_understands_turkish_and_negation():
	intent = fallback_intent("ejderha olan ortaçağ oyunu, büyü olmasın")
	assert intent.include == ["medieval", "dragon"]
	assert intent.exclude == ["magic"]
	assert intent.titles == []


def test_fallback_does_not_exclude_merely_mentioned_concepts():
	assert fallback_intent("wizard school game").exclude == []


def test_fallback_tolerates_typos():
	assert fallback_intent("horor game").include == ["horror"]


def test_fallback_with_no_known_keywords_is_empty():
	intent = fallback_intent("something relaxing")
	assert intent.include == []
	assert intent.exclude == []


@pytest.mark.parametrize("today,expected", [
	(date(2025, 3, 1), "EA SPORTS FC 25"),
	(date(2025, 9, 1), "EA SPORTS FC 26"),
	(date(2099, 12, 31), "EA SPORTS FC 00"),
])
def test_season_edition_rolls_over_in_september(today, expected):
	assert season_edition("EA SPORTS FC", today) == expected
