"""Tests for grouping rows into shots and computing arrival latencies."""

from shottiming.processing.parser import parse_csv
from shottiming.processing.shots import Shot, aggregate_shots, build_shot


def _shots(csv_text: str) -> list[Shot]:
    return aggregate_shots(parse_csv(csv_text).rows)


class TestCompleteness:
    """Only shots that reach a total distance are emitted."""

    def test_group_with_total_yields_one_shot(self):
        shots = _shots(
            "10:00:00.000,Ana,1,1,150,,,,,\n"
            "10:00:00.400,Ana,1,1,,12,,,,\n"
            "10:00:01.000,Ana,1,1,,,30,1,250,270\n"
        )
        assert len(shots) == 1
        assert shots[0].key == ("Ana", 1, 1)

    def test_group_without_total_dropped(self):
        """Other fields being present does not rescue an incomplete shot."""
        shots = _shots(
            "10:00:00.000,Ana,1,1,150,12,30,1,250,\n"
            "10:00:01.000,Ana,1,1,151,,,,,\n"
        )
        assert shots == []

    def test_single_row_shot_has_zero_latency(self):
        shots = _shots("10:00:00.000,Ana,1,1,150,12,30,1,250,270\n")

        assert len(shots) == 1
        shot = shots[0]
        assert shot.time_to_ball_speed == 0
        assert shot.time_to_total == 0
        assert shot.first_timestamp == "10:00:00.000"

    def test_only_complete_shots_kept(self):
        shots = _shots(
            "10:00:00.000,Ana,1,1,,,,,,270\n"
            "10:01:00.000,Ana,1,2,150,,,,,\n"
            "10:02:00.000,Bo,1,1,,,,,,250\n"
        )
        assert [s.key for s in shots] == [("Ana", 1, 1), ("Bo", 1, 1)]

    def test_empty_input(self):
        assert aggregate_shots([]) == []
        assert build_shot([]) is None


class TestLatency:
    """Latency is measured from the shot's first row to each field's first arrival."""

    def test_latency_from_first_row(self):
        shots = _shots(
            "10:00:00.000,Ana,1,1,,,,,,\n"
            "10:00:00.500,Ana,1,1,150,,,,,\n"
            "10:00:01.200,Ana,1,1,,,,,,270\n"
        )
        shot = shots[0]

        assert shot.time_to_ball_speed == 500
        assert shot.time_to_total == 1200
        assert shot.time_to_launch_angle is None
        assert shot.launch_angle is None

    def test_rows_sorted_by_timestamp(self):
        """Out-of-order rows are sorted before measuring."""
        shots = _shots(
            "10:00:01.000,Ana,1,1,,,,,,270\n"
            "10:00:00.000,Ana,1,1,150,,,,,\n"
        )
        shot = shots[0]

        assert shot.first_timestamp == "10:00:00.000"
        assert shot.time_to_ball_speed == 0
        assert shot.time_to_total == 1000

    def test_final_value_overrides_but_latency_keeps_first_arrival(self):
        shots = _shots(
            "10:00:00.000,Ana,1,1,100,,,,,\n"
            "10:00:00.300,Ana,1,1,105,,,,,\n"
            "10:00:01.000,Ana,1,1,,,,,,270\n"
        )
        shot = shots[0]

        assert shot.ball_speed == 105
        assert shot.time_to_ball_speed == 0

    def test_equal_timestamps_keep_file_order(self):
        shots = _shots(
            "10:00:00.000,Ana,1,1,100,,,,,\n"
            "10:00:00.000,Ana,1,1,105,,,,,270\n"
        )
        assert shots[0].ball_speed == 105

    def test_arrival_order_not_enforced(self):
        """Total arriving before ball speed is recorded as-is."""
        shots = _shots(
            "10:00:00.000,Ana,1,1,,,,,,270\n"
            "10:00:02.000,Ana,1,1,150,,,,,\n"
        )
        shot = shots[0]

        assert shot.time_to_total == 0
        assert shot.time_to_ball_speed == 2000

    def test_malformed_timestamp_sorts_first(self):
        shots = _shots(
            "10:00:00.000,Ana,1,1,150,,,,,\n"
            "garbage,Ana,1,1,,,,,,270\n"
        )
        shot = shots[0]

        assert shot.first_timestamp == "garbage"
        assert shot.time_to_total == 0
        assert shot.time_to_ball_speed == 36000000


class TestGrouping:
    """Rows are partitioned by golfer, hole and stroke."""

    def test_same_position_different_golfers(self):
        shots = _shots(
            "10:00:00.000,Ana,1,1,150,,,,,270\n"
            "10:00:00.000,Bo,1,1,140,,,,,250\n"
        )
        assert {s.golfer: s.total_distance for s in shots} == {"Ana": 270, "Bo": 250}

    def test_interleaved_rows(self):
        shots = _shots(
            "10:00:00.000,Ana,1,1,150,,,,,\n"
            "10:00:00.100,Ana,1,2,151,,,,,\n"
            "10:00:00.900,Ana,1,2,,,,,,260\n"
            "10:00:01.000,Ana,1,1,,,,,,270\n"
        )

        assert [s.key for s in shots] == [("Ana", 1, 1), ("Ana", 1, 2)]
        assert shots[0].time_to_total == 1000
        assert shots[1].time_to_total == 800


class TestSequentialGaps:
    """Gap between consecutive fields in expected arrival order."""

    def test_gaps_from_latencies(self):
        shot = Shot(
            golfer="Ana",
            hole_number=1,
            stroke_number=1,
            first_timestamp="10:00:00.000",
            total_distance=270,
            time_to_ball_speed=0,
            time_to_launch_angle=500,
            time_to_apex=None,
            time_to_curve=1200,
            time_to_carry=1200,
            time_to_total=1500,
        )

        assert shot.sequential_gaps() == {
            "gap_to_ball_speed": 0,
            "gap_to_launch_angle": 500,
            "gap_to_apex": None,
            "gap_to_curve": None,
            "gap_to_carry": 0,
            "gap_to_total": 300,
        }

    def test_first_gap_measured_from_start(self):
        shot = Shot(
            golfer="Ana",
            hole_number=1,
            stroke_number=1,
            first_timestamp="10:00:00.000",
            time_to_ball_speed=250,
            time_to_total=900,
        )
        gaps = shot.sequential_gaps()

        assert gaps["gap_to_ball_speed"] == 250
        assert gaps["gap_to_total"] is None

    def test_to_dict_includes_gaps_on_request(self):
        shot = _shots("10:00:00.000,Ana,1,1,150,12,30,1,250,270\n")[0]

        assert "gap_to_total" not in shot.to_dict()
        assert shot.to_dict(include_gaps=True)["gap_to_total"] == 0
