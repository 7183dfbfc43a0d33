import os

import pytest

from ocrbridge.normalize import DEFAULT_LANGUAGES, expand_home, split_languages


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("en", ["en"]),
        ("en,, ,fr", ["en", "fr"]),
        ("ch_sim；en", ["ch_sim", "en"]),
        ("ja，en;ko", ["ja", "en", "ko"]),
        ("  de  fr\t", ["de", "fr"]),
    ],
)
def test_split_languages(text: str, expected: list[str]) -> None:
    assert split_languages(text) == expected


@pytest.mark.parametrize("text", ["", "   ", ",;， ；", None])
def test_split_languages_falls_back_to_default(text) -> None:
    assert split_languages(text) == list(DEFAULT_LANGUAGES)
    assert len(DEFAULT_LANGUAGES) == 2


def test_expand_home(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", "/home/tester")

    assert expand_home("~") == "/home/tester"
    assert expand_home("~/models") == os.path.join("/home/tester", "models")
    assert expand_home("/abs/path") == "/abs/path"
    assert expand_home("relative/~") == "relative/~"
    assert expand_home("~other/models") == "~other/models"


def test_expand_home_without_home_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HOME", raising=False)
    monkeypatch.delenv("USERPROFILE", raising=False)

    assert expand_home("~/models") == "~/models"
