from framereel.utils.timefmt import format_time, frame_to_seconds


def test_format_time_edge_cases():
    assert format_time(-1.0) == "00:00.000"  # negative clamps
    assert format_time(0.0) == "00:00.000"
    assert format_time(0.9996) == "00:01.000"
    assert format_time(61.0) == "01:01.000"
    assert format_time(3600 + 62.5).startswith("61:02")


def test_format_time_precision():
    assert format_time(1.2344) == "00:01.234"
    assert format_time(1.2345) == "00:01.235"  # rounds up (half-up)


def test_frame_to_seconds():
    assert frame_to_seconds(0, 24.0) == 0.0
    assert frame_to_seconds(48, 24.0) == 2.0
    assert frame_to_seconds(5, 10.0) == 0.5
    assert frame_to_seconds(-3, 10.0) == 0.0
    assert frame_to_seconds(10, 0) == 0.0
    assert format_time(frame_to_seconds(30, 24.0)) == "00:01.250"
