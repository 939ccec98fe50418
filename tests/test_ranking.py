"""
Unit tests for Ranker scoring and ordering.
"""

from datetime import date

import pytest

from gamescout.models import Intent
from gamescout.ranking import Ranker, query_bigrams, title_hit


def make_ranker():
	return Ranker(today=lambda: date(2025, 1, 1))


@pytest.mark.parametrize("name,titles,expected", [
	("Hades", ["hades"], 1.0),
	("Hades II", ["Hades"], 0.85),
	("The Witcher 3: Wild Hunt", ["Witcher 3"], 0.70),
	("Celeste", ["Hades"], 0.0),
	("Celeste", [], 0.0),
])
def test_title_hit(name, titles, expected):
	assert title_hit(name, titles) == expected


def test_query_bigrams_skip_fillers_and_short_tokens():
	assert query_bigrams("police chase game in the city") == ["police chase", "chase the", "the city"]
	assert query_bigrams("play") == []


def test_score_of_bare_entry_is_only_adjustments(entry):
	bare = entry(1, "Zzzzzzzz Qqqq", platforms=[])
	assert make_ranker().score(bare, Intent(), [bare], "") == pytest.approx(-0.2)


def test_exact_title_match_dominates(entry):
	hades = entry(1, "Hades", platforms=[])
	assert make_ranker().score(hades, Intent(titles=["Hades"]), [hades], "") == pytest.approx(1.3 - 0.3 - 0.2)


def test_browser_only_and_mobile_games_rank_lower(entry):
	intent = Intent(include=["dragon"])
	pc = entry(1, "Dragon Quest", platforms=["PC"])
	both = entry(2, "Dragon Quest", platforms=["PC", "Web"])
	web = entry(3, "Dragon Quest", platforms=["Web"])
	mobile = entry(4, "Dragon Quest", platforms=["iOS", "Android"])
	ranker = make_ranker()
	scores = [ranker.score(e, intent, [e], "dragon") for e in (pc, both, web, mobile)]
	assert scores[0] == pytest.approx(scores[1])
	assert scores[0] - scores[2] == pytest.approx(1.1)
	assert scores[0] - scores[3] == pytest.approx(0.7)


def test_niche_topics_are_penalized_unless_asked_for(entry):
	idle = entry(1, "Idle Dragon Keeper", genres=["Casual"])
	ranker = make_ranker()
	plain = ranker.score(idle, Intent(include=["dragon"]), [idle], "dragon")
	asked = ranker.score(idle, Intent(include=["dragon", "idle"]), [idle], "idle dragon")
	assert asked > plain


def test_asking_for_one_niche_topic_does_not_excuse_another(entry):
	ranker = make_ranker()
	gacha = entry(1, "Star Heroes Gacha", genres=["RPG"])
	heroes = entry(2, "Star Heroes Saga", genres=["RPG"])
	intent = Intent(include=["idle"])
	assert ranker._topic_mismatch_penalty(gacha, intent.include) == pytest.approx(-0.4)
	assert ranker._topic_mismatch_penalty(heroes, intent.include) == 0.0
	both = entry(3, "Idle Gacha Heroes", genres=["RPG"])
	assert ranker._topic_mismatch_penalty(both, ["idle", "gacha"]) == 0.0


def test_newest_franchise_entry_ranks_first(entry):
	tw2 = entry(1, "Total War: Warhammer II", released="2017-09-28", genres=["Strategy"])
	tw3 = entry(2, "Total War: WARHAMMER III", released="2022-02-17", genres=["Strategy"])
	intent = Intent(include=["strategy"], titles=["Total War: Warhammer"])
	ranked = make_ranker().rank([tw2, tw3], intent, "warhammer strategy")
	assert [r.entry.id for r in ranked] == [2, 1]
	assert ranked[0].franchise_key == ranked[1].franchise_key == "total war"


def test_franchise_boost_depends_on_candidate_set(entry):
	older = entry(1, "Far Cry 5", released="2018-03-27")
	newer = entry(2, "Far Cry 6", released="2021-10-07")
	ranker = make_ranker()
	alone = ranker.score(older, Intent(), [older], "")
	with_sequel = ranker.score(older, Intent(), [older, newer], "")
	assert alone - with_sequel == pytest.approx(0.35)


def test_equal_scores_break_ties_by_name(entry):
	a = entry(1, "Beta Quest Saga")
	b = entry(2, "Alpha Quest Saga")
	ranked = make_ranker().rank([a, b], Intent(), "")
	assert [r.entry.name for r in ranked] == ["Alpha Quest Saga", "Beta Quest Saga"]


def test_rank_is_deterministic(entry):
	games = [entry(i, f"Game Number {name}", released="2020-01-01") for i, name in enumerate(["One", "Two", "Three"])]
	ranker = make_ranker()
	first = [r.entry.id for r in ranker.rank(games, Intent(), "game")]
	again = [r.entry.id for r in ranker.rank(list(reversed(games)), Intent(), "game")]
	assert first == again
