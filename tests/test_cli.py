"""Tests for the pairleroy command line tools."""

import json

import pytest

from pairleroy.cli import main

SINGLE_COLOR = ["--radius", "1", "--seed", "5", "--types", "100,0,0", "--colors", "100,0,0,0"]


def test_generate_quotas(capsys):
    main([*SINGLE_COLOR, "generate"])
    output = json.loads(capsys.readouterr().out)

    assert output["seed"] == 5
    assert output["strategy"] == "quotas"
    assert len(output["tiles"]) == 7
    assert all(tile["type"] == 1 and tile["color"] == 0 for tile in output["tiles"])
    assert output["unit_targets"] == [21, 0, 0, 0]
    assert output["unit_usage"] == [21, 0, 0, 0]


def test_generate_backtrack(capsys):
    main(["--radius", "2", "--seed", "3", "generate", "--strategy", "backtrack"])
    output = json.loads(capsys.readouterr().out)

    assert len(output["tiles"]) == 19
    for tile in output["tiles"]:
        assert len(tile["colors"]) == tile["type"]
        assert len(set(tile["colors"])) == tile["type"]


def test_autofill(capsys):
    main([*SINGLE_COLOR, "autofill"])
    output = json.loads(capsys.readouterr().out)

    assert output["result"] == "done"
    assert output["placed"] == output["tile_count"] == 7
    assert len(output["board"]["placements"]) == 7


def test_autofill_step_limit(capsys):
    main([*SINGLE_COLOR, "autofill", "--max-steps", "2"])
    output = json.loads(capsys.readouterr().out)

    assert output["result"] == "placed"
    assert output["placed"] == 2


def test_engine_error_exits_nonzero(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--radius", "1", "--seed", "5", "--colors", "0,0,0,0", "generate"])
    assert exc.value.code == 1
    assert "InvalidInputError" in capsys.readouterr().err


def test_bad_percent_list():
    with pytest.raises(SystemExit):
        main(["--types", "a,b,c", "generate"])


def test_output_lists_colour_legend(capsys):
    main([*SINGLE_COLOR, "generate"])
    colors = json.loads(capsys.readouterr().out)["colors"]

    assert [c["index"] for c in colors] == [0, 1, 2, 3]
    assert colors[0] == {"index": 0, "hex": "#e57373", "label": "Main-d'oeuvre"}
