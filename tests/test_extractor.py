"""Tests for turning plays into report text."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from gamedaybot.core.calls import HomeRunCallPicker, parse_home_run
from gamedaybot.core.extractor import EventExtractor, intensity_markers, outs_clause
from gamedaybot.models.message import PENDING, UNAVAILABLE
from gamedaybot.models.play import PlayEvent

STATCAST_HEADER = "\n\n**Statcast Metrics:**\n"
HR_DESCRIPTION = "Jose Ramirez homers (12) on a fly ball to left field.   Steven Kwan scores."


def extract(extractor: EventExtractor, raw: dict, game) -> object:
    return extractor.extract(PlayEvent.from_feed(raw), game)


class TestIntensityMarkers:
    @pytest.mark.parametrize(
        ("speed", "fires"),
        [(94.9, 0), (95.0, 1), (99.9, 1), (100.0, 2), (109.9, 2), (110.0, 3), (117.4, 3)],
    )
    def test_tiers(self, speed: float, fires: int):
        expected = " " + "\U0001f525" * fires if fires else ""
        assert intensity_markers(speed) == expected


class TestOutsClause:
    def test_singular(self):
        assert outs_clause(1) == "**1 out.**"

    @pytest.mark.parametrize("outs", [0, 2, 3])
    def test_plural(self, outs: int):
        assert outs_clause(outs) == f"**{outs} outs.**"


class TestNarrative:
    def test_out_appends_count(self, feed, make_game):
        play = feed.at_bat(
            3, "Jose Ramirez grounds out.", event_type="field_out", is_out=True, outs=2
        )
        result = extract(EventExtractor(), play, make_game([play]))
        assert result.body == "Jose Ramirez grounds out. **2 outs.**"
        assert result.narrative == result.body

    def test_incomplete_at_bat_has_empty_narrative(self, feed, make_game):
        play = feed.at_bat(3, complete=False, play_events=[feed.pitch()])
        result = extract(EventExtractor(), play, make_game([play]))
        assert result.body == ""
        assert result.narrative == ""

    def test_scoring_play_top_half_emphasizes_away(self, feed, make_game):
        play = feed.at_bat(
            4, "Steven Kwan walks.   Bo Naylor scores.", scoring=True, away_score=3, home_score=2
        )
        result = extract(EventExtractor(), play, make_game([play]))
        assert result.body == "Steven Kwan walks.   Bo Naylor scores.\n# _CLE 3_, DET 2"
        assert result.is_scoring_play

    def test_scoring_play_bottom_half_emphasizes_home(self, feed, make_game):
        play = feed.at_bat(
            5, "Riley Greene walks.   Kerry Carpenter scores.", half="bottom",
            scoring=True, away_score=3, home_score=3,
        )
        result = extract(EventExtractor(), play, make_game([play]))
        assert result.body.endswith("\n# CLE 3, _DET 3_")

    def test_no_score_line_while_review_in_progress(self, feed, make_game):
        play = feed.at_bat(4, "Bo Naylor scores.", scoring=True, review_in_progress=True)
        result = extract(EventExtractor(), play, make_game([play]))
        assert "#" not in result.body

    def test_reportable_sub_event(self, make_game, feed):
        raw = feed.sub_event("Steven Kwan steals (3) 2nd base.", "stolen_base_2b")
        event = PlayEvent.from_feed(raw, at_bat_index=2, half_inning="top")
        result = EventExtractor().extract(event, make_game())
        assert result.body == "Steven Kwan steals (3) 2nd base."
        assert result.at_bat_index == 2
        assert not result.is_complete


class TestHitMetrics:
    def test_metrics_block_and_pending_xba(self, feed, make_game):
        play = feed.at_bat(
            6,
            "Steven Kwan singles on a line drive.",
            play_events=[feed.in_play(101.2, 12.0, 250.0)],
        )
        result = extract(EventExtractor(), play, make_game([play]))
        assert result.body == (
            "Steven Kwan singles on a line drive."
            + STATCAST_HEADER
            + "Exit Velo: 101.2 mph \U0001f525\U0001f525\nLaunch Angle: 12°\nDistance: 250 ft."
        )
        assert result.xba == PENDING
        assert result.hr_park is None
        assert result.is_in_play
        assert result.play_id == "play-abc"
        assert result.narrative.endswith("\nxBA: Pending...")

    def test_long_fly_ball_also_waits_for_hr_park(self, feed, make_game):
        play = feed.at_bat(
            6, "Jose Ramirez flies out to center fielder.", is_out=True, outs=1,
            play_events=[feed.in_play(104.0, 31.0, 398.0)],
        )
        result = extract(EventExtractor(), play, make_game([play]))
        assert result.xba == PENDING
        assert result.hr_park == PENDING
        assert result.narrative.endswith("xBA: Pending...\nHR/Park: Pending...")
        assert "**1 out.**" in result.body

    def test_unmeasured_ball(self, feed, make_game):
        play = feed.at_bat(6, "Steven Kwan bunts.", play_events=[feed.in_play(None)])
        result = extract(EventExtractor(), play, make_game([play]))
        assert result.body.endswith(
            "Exit Velocity: Unavailable\nLaunch Angle: Unavailable\nDistance: Unavailable"
        )
        assert result.xba == UNAVAILABLE
        assert result.hr_park == UNAVAILABLE

    def test_no_metrics_under_review(self, feed, make_game):
        play = feed.at_bat(
            6, "Steven Kwan singles.", has_review=True, play_events=[feed.in_play()]
        )
        result = extract(EventExtractor(), play, make_game([play]))
        assert STATCAST_HEADER not in result.body
        assert result.xba is None


class TestStrikeoutZone:
    def strikeout(self, feed, final_px: float, final_pz: float) -> dict:
        return feed.at_bat(
            7, "Kerry Carpenter called out on strikes.", event="Strikeout",
            event_type="strikeout", is_out=True, outs=1, strikes=3,
            play_events=[feed.pitch(0.0, 2.5), feed.pitch(final_px, final_pz)],
        )

    def test_outside_pitch_reports_distance(self, feed, make_game):
        play = self.strikeout(feed, 1.2, 2.5)
        result = extract(EventExtractor(), play, make_game([play]))
        assert result.zone_note == (
            "The pitch was outside the strike zone.\n"
            "Distance from zone - Horizontal: 0.37, Vertical: 0.00."
        )
        assert result.is_strikeout
        assert result.narrative.endswith("Vertical: 0.00.")

    def test_inside_pitch(self, feed, make_game):
        play = self.strikeout(feed, 0.3, 2.0)
        result = extract(EventExtractor(), play, make_game([play]))
        assert result.zone_note == "The pitch was inside the strike zone."

    def test_missing_pitch_location(self, feed, make_game):
        play = self.strikeout(feed, 0.3, 2.0)
        play["playEvents"][-1]["pitchData"]["coordinates"] = {}
        result = extract(EventExtractor(), play, make_game([play]))
        assert result.zone_note is None


class TestStartAnnouncement:
    def start_play(self, feed, **kwargs) -> dict:
        return feed.at_bat(
            0,
            complete=False,
            play_events=[feed.sub_event("Status Change - In Progress", "game_advisory")],
            **kwargs,
        )

    def test_announced_once(self, feed, make_game):
        play = self.start_play(feed)
        game = make_game([play])
        first = extract(EventExtractor(), play, game)
        second = extract(EventExtractor(), play, game)
        assert first.body == "A game is starting!"
        assert first.is_start_event
        assert game.start_reported
        assert second.narrative == ""

    def test_home_favorite(self, feed, make_game):
        play = self.start_play(feed)
        result = extract(EventExtractor(favorite_team_id=116), play, make_game([play]))
        assert result.body == "And we're underway!"

    def test_away_favorite(self, feed, make_game):
        play = self.start_play(feed)
        result = extract(EventExtractor(favorite_team_id=114), play, make_game([play]))
        assert result.body == "A game is starting! Let's go Guardians!"

    def test_announcement_precedes_first_result(self, feed, make_game):
        play = feed.at_bat(
            0, "Steven Kwan walks.",
            play_events=[feed.sub_event("Status Change - In Progress", "game_advisory")],
        )
        result = extract(EventExtractor(), play, make_game([play]))
        assert result.body == "A game is starting!\nSteven Kwan walks."


class TestHomeRunCalls:
    def home_run(self, feed, half: str) -> dict:
        return feed.at_bat(9, HR_DESCRIPTION, event="Home Run", event_type="home_run", half=half)

    def test_favorite_team_gets_a_call(self, feed, make_game):
        picker = MagicMock(spec=HomeRunCallPicker)
        picker.call_for.return_value = "GONE!\nSteven Kwan scores."
        play = self.home_run(feed, "top")
        extractor = EventExtractor(favorite_team_id=114, call_picker=picker)
        result = extract(extractor, play, make_game([play]))
        assert result.body == "GONE!\nSteven Kwan scores."
        assert result.description == HR_DESCRIPTION
        picker.call_for.assert_called_once_with(HR_DESCRIPTION)

    def test_opponent_home_run_keeps_description(self, feed, make_game):
        picker = MagicMock(spec=HomeRunCallPicker)
        play = self.home_run(feed, "bottom")
        extractor = EventExtractor(favorite_team_id=114, call_picker=picker)
        result = extract(extractor, play, make_game([play]))
        assert result.body == HR_DESCRIPTION
        picker.call_for.assert_not_called()

    def test_parse_home_run(self):
        parts = parse_home_run(HR_DESCRIPTION)
        assert parts is not None
        assert parts.player == "Jose Ramirez"
        assert parts.field == "left"
        assert parts.hr_number == "(12)"
        assert parts.scorers == "Steven Kwan scores."
        assert not parts.grand_slam

    def test_unparseable_description(self):
        assert parse_home_run("Steven Kwan walks.") is None
        assert HomeRunCallPicker().call_for("Steven Kwan walks.") is None

    def test_grand_slam_call(self):
        rng = MagicMock()
        rng.choice.side_effect = lambda calls: calls[-1]
        description = (
            "Jose Ramirez hits a grand slam (2) to right field.   "
            "Steven Kwan scores.   Bo Naylor scores.   Josh Naylor scores."
        )
        call = HomeRunCallPicker(rng=rng).call_for(description)
        assert call is not None
        assert "JOSE RAMIREZ" in call
        assert "GRAND SALAMI" in call
        assert call.endswith("\nSteven Kwan scores.   Bo Naylor scores.   Josh Naylor scores.")
