#!/usr/bin/env python3
"""
Shared fixtures: a small RTK index in both CSV formats and an isolated
environment for configuration tests.
"""

import json
from pathlib import Path

import pytest

RTK_ENV_VARS = ("RTK_DATA_DIR", "RTK_REPORTS_DIR", "RTK_MAX_DEPTH", "RTK_REFERERS_PAGE_SIZE")

KANJI_CSV = """\
kanji,id_5th_ed,id_6th_ed,keyword_5th_ed,keyword_6th_ed,components,on_reading,kun_reading
一,1,1,one,one,,イチ,ひと-
口,11,11,mouth,mouth,,コウ,くち
日,12,12,day,day,,ニチ,ひ
月,13,13,month,month,,ゲツ,つき
明,18,18,bright,bright,sun;moon,メイ,あか.るい
唱,19,20,chant,sing,mouth;day;day,ショウ,とな.える
肘,2000,2001,elbow,elbow,flesh;glue,チュウ,ひじ
私,800,801,private,private,wheat;elbow,シ,わたくし
三,3,3,three,three,one;one;two,サン,み
"""

PRIMITIVES_CSV = """\
old_path,parent_frame,unicode,next_frame,real_heisig
primitives/p1-one.svg,1,,,true
primitives/p11-mouth.svg,11,,,true
primitives/p12-sun.svg,12,,,yes
primitives/p13-moon.svg,13,,,1
primitives/p229.2-elbow.svg,,厶,800,false
primitives/p229.3-top hat.svg,,⺊,,
"""

JLPT_LEVELS = {
    "一": "N5",
    "口": "N5",
    "日": "N5",
    "月": "N5",
    "明": "N4",
    "三": "N5",
    "私": "N4",
    "唱": "N1",
}


@pytest.fixture
def kanji_csv() -> str:
    return KANJI_CSV


@pytest.fixture
def primitives_csv() -> str:
    return PRIMITIVES_CSV


@pytest.fixture
def jlpt_levels() -> dict[str, str]:
    return dict(JLPT_LEVELS)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """A data directory holding the sample index and JLPT mapping."""
    directory = tmp_path / "data"
    directory.mkdir()
    (directory / "kanji.csv").write_text(KANJI_CSV, encoding="utf-8")
    (directory / "primitives.csv").write_text(PRIMITIVES_CSV, encoding="utf-8")
    (directory / "jlpt-kanji-mapping.json").write_text(
        json.dumps(JLPT_LEVELS, ensure_ascii=False), encoding="utf-8"
    )
    return directory


@pytest.fixture
def clean_env(monkeypatch):
    """
    Remove RTK_* variables for the duration of a test.

    Each variable is set then deleted so monkeypatch also removes whatever
    a .env file loads during the test.
    """
    for name in RTK_ENV_VARS:
        monkeypatch.setenv(name, "0")
        monkeypatch.delenv(name)
    return monkeypatch
