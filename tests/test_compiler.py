from __future__ import annotations

import pytest

from provisio.compiler import Settings, compile_entry, compile_plan

SETTINGS = Settings(
    home="/var/www/mediawiki/w",
    version="REL1_43",
    volume="/mediawiki",
    origin_files="/mw_origin_files",
    patch_dir="/tmp",
)
TARGET = "/var/www/mediawiki/w/canasta-extensions/Cite"


def test_default_repository_uses_version_branch() -> None:
    j = compile_entry("extensions", "Cite", {"commit": "abc123"}, SETTINGS)

    assert j.name == "extensions/Cite"
    assert [s.name for s in j.steps] == ["clone", "checkout", "drop .git"]
    assert j.steps[0].run == (
        "git clone --single-branch -b REL1_43 "
        f"https://github.com/wikimedia/mediawiki-extensions-Cite {TARGET}"
    )
    assert j.command == (
        f"git clone --single-branch -b REL1_43 https://github.com/wikimedia/mediawiki-extensions-Cite {TARGET}"
        f" && cd {TARGET} && git checkout -q abc123"
        f" && rm -rf {TARGET}/.git"
    )


def test_explicit_repository_without_branch() -> None:
    j = compile_entry("skins", "Citizen", {"repository": "https://github.com/StarCitizenTools/mediawiki-skins-Citizen"}, SETTINGS)
    assert j.steps[0].run == (
        "git clone https://github.com/StarCitizenTools/mediawiki-skins-Citizen "
        "/var/www/mediawiki/w/canasta-skins/Citizen"
    )
    assert "checkout" not in [s.name for s in j.steps]


def test_explicit_branch() -> None:
    j = compile_entry("extensions", "Cite", {"branch": "master"}, SETTINGS)
    assert "--single-branch -b master " in j.steps[0].run


def test_patches_and_additional_steps() -> None:
    skipped: list[str] = []
    j = compile_entry(
        "extensions",
        "Cite",
        {
            "commit": "abc",
            "patches": ["cite-fix.patch"],
            "additional steps": ["composer update", "git submodule update", "npm ci"],
        },
        SETTINGS,
        skipped,
    )
    runs = [s.render() for s in j.steps]
    assert f"cd {TARGET} && git apply /tmp/cite-fix.patch" in runs
    assert f"composer install --working-dir={TARGET} --no-interaction --no-dev" in runs
    assert f"cd {TARGET} && git submodule update --init" in runs
    assert skipped == ["extensions/Cite: npm ci"]
    assert runs[-1] == f"rm -rf {TARGET}/.git"


def test_persistent_directories() -> None:
    j = compile_entry("extensions", "SMW", {"persistent directories": ["cache", "data"]}, SETTINGS)
    target = "/var/www/mediawiki/w/canasta-extensions/SMW"
    runs = [s.render() for s in j.steps]
    tail = runs[runs.index(f"rm -rf {target}/.git") + 1:]
    assert tail == [
        "mkdir -p /mw_origin_files/extensions/SMW",
        f"mv {target}/cache /mw_origin_files/extensions/SMW/",
        f"ln -s /mediawiki/extensions/SMW/cache {target}/cache",
        f"mv {target}/data /mw_origin_files/extensions/SMW/",
        f"ln -s /mediawiki/extensions/SMW/data {target}/data",
    ]


def test_persistent_directories_need_volume() -> None:
    settings = Settings(home="/w", version="REL1_43")
    with pytest.raises(ValueError, match="persistent directories"):
        compile_entry("extensions", "SMW", {"persistent directories": ["cache"]}, settings)


def test_paths_with_spaces_are_quoted() -> None:
    settings = Settings(home="/my wiki", version="REL1_43")
    j = compile_entry("extensions", "Cite", {}, settings)
    assert j.steps[0].run.endswith("'/my wiki/canasta-extensions/Cite'")


def test_compile_plan_splits_composer_and_jobs() -> None:
    contents = {
        "extensions": {
            "Cite": {"commit": "a"},
            "Removed": {"remove": True, "commit": "b"},
            "SemanticMediaWiki": {"composer-name": "mediawiki/semantic-media-wiki", "composer-version": "4.1.3"},
            "Maps": {"composer-name": "mediawiki/maps"},
            "ParserFunctions": {"bundled": True},
        },
        "skins": {
            "Timeless": {"commit": "c"},
            "Vector": {},
        },
    }
    plan = compile_plan(contents, SETTINGS)

    assert plan.composer_packages == ["mediawiki/semantic-media-wiki:4.1.3", "mediawiki/maps"]
    assert [j.name for j in plan.jobs] == ["extensions/Cite", "skins/Timeless", "skins/Vector"]
    assert plan.skipped == []


def test_patches_must_be_a_list() -> None:
    with pytest.raises(ValueError):
        compile_entry("extensions", "Cite", {"patches": {"a": 1}}, SETTINGS)
