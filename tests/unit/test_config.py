"""Unit tests for configuration loading."""

from pathlib import Path

import pytest

from mdbook_gitinfo.config import (
    AlignOne,
    AlignSplit,
    ConfigInvalidError,
    MarginOne,
    MarginQuad,
    MarginSides,
    create_default_config,
    find_config_file,
    load_config,
    load_config_from_dict,
    merge_tables,
    substitute_env_vars,
)


class TestSubstituteEnvVars:
    """Tests for environment variable substitution."""

    def test_substitute_string(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env var in string."""
        monkeypatch.setenv("GITINFO_BRANCH", "release")

        result = substitute_env_vars("refs/${GITINFO_BRANCH}")

        assert result == "refs/release"

    def test_substitute_nested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env vars in nested dicts and lists."""
        monkeypatch.setenv("RELEASE_TAG", "v1.2.0")

        data = {"tag": "${RELEASE_TAG}", "exclude-contributors": ["bot", "${RELEASE_TAG}"]}
        result = substitute_env_vars(data)

        assert result == {"tag": "v1.2.0", "exclude-contributors": ["bot", "v1.2.0"]}

    def test_missing_env_var_raises(self) -> None:
        """Test that missing env var raises ValueError."""
        with pytest.raises(ValueError, match="Environment variable not set"):
            substitute_env_vars("${GITINFO_SURELY_UNSET_VAR}")

    def test_passthrough_non_string(self) -> None:
        """Test that non-string values pass through unchanged."""
        assert substitute_env_vars(24) == 24
        assert substitute_env_vars(True) is True
        assert substitute_env_vars(None) is None


class TestFindConfigFile:
    """Tests for YAML config discovery."""

    def test_finds_dot_gitinfo_first(self, tmp_path: Path) -> None:
        (tmp_path / ".gitinfo").mkdir()
        preferred = tmp_path / ".gitinfo" / "config.yaml"
        preferred.write_text("footer: true\n")
        (tmp_path / "gitinfo.yaml").write_text("footer: false\n")

        assert find_config_file(tmp_path) == preferred.resolve()

    def test_finds_root_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "gitinfo.yaml").write_text("footer: false\n")

        assert find_config_file(tmp_path) == (tmp_path / "gitinfo.yaml").resolve()

    def test_none_when_absent(self, tmp_path: Path) -> None:
        assert find_config_file(tmp_path) is None


class TestLoadConfigFromDict:
    """Tests for reading the [preprocessor.gitinfo] table."""

    def test_empty_table(self) -> None:
        """Test that an empty table leaves every field unset."""
        config = load_config_from_dict({})

        assert config.header is None
        assert config.footer is None
        assert config.message is None
        assert config.margin is None
        assert config.contributor_map == {}

    def test_kebab_case_keys(self) -> None:
        config = load_config_from_dict(
            {
                "font-size": "0.9em",
                "date-format": "%d/%m/%Y",
                "time-format": "",
                "contributors-max-visible": 10,
                "exclude-contributors": ["dependabot"],
                "contributors-source": "file",
            }
        )

        assert config.font_size == "0.9em"
        assert config.date_format == "%d/%m/%Y"
        assert config.time_format == ""
        assert config.contributors_max_visible == 10
        assert config.exclude_contributors == ["dependabot"]
        assert config.contributors_source == "file"

    def test_message_table(self) -> None:
        config = load_config_from_dict({"message": {"header": "H", "both": "B"}})

        assert config.message is not None
        assert config.message.header == "H"
        assert config.message.footer is None
        assert config.message.both == "B"

    def test_align_scalar_and_split(self) -> None:
        assert load_config_from_dict({"align": "left"}).align == AlignOne("left")
        assert load_config_from_dict({"align": {"header": "right", "both": "left"}}).align == AlignSplit(
            header="right", both="left"
        )

    def test_margin_placement_table(self) -> None:
        config = load_config_from_dict(
            {
                "margin": {
                    "header": ["1em", "2em"],
                    "footer": {"bottom": "3em"},
                    "both": "0",
                }
            }
        )

        assert config.margin is not None
        assert config.margin.header == MarginQuad(("1em", "2em"))
        assert config.margin.footer == MarginSides(bottom="3em")
        assert config.margin.both == MarginOne("0")

    def test_margin_shorthand_is_both(self) -> None:
        """Test that a bare margin value applies to both placements."""
        config = load_config_from_dict({"margin": ["1em", 0]})

        assert config.margin is not None
        assert config.margin.both == MarginQuad(("1em", "0"))
        assert config.margin.header is None

    def test_margin_sides_table_is_both(self) -> None:
        config = load_config_from_dict({"margin": {"top": "1em", "left": "2em"}})

        assert config.margin is not None
        assert config.margin.both == MarginSides(top="1em", left="2em")

    def test_contributor_map(self) -> None:
        config = load_config_from_dict({"contributor-map": {"Jane Doe": "janedoe"}})

        assert config.contributor_map == {"Jane Doe": "janedoe"}

    @pytest.mark.parametrize(
        ("data", "key"),
        [
            ({"header": "yes"}, "header"),
            ({"branch": 5}, "branch"),
            ({"contributors-max-visible": -1}, "contributors-max-visible"),
            ({"contributors-max-visible": True}, "contributors-max-visible"),
            ({"exclude-contributors": "bot"}, "exclude-contributors"),
            ({"message": "text"}, "message"),
            ({"align": 3}, "align"),
            ({"margin": ["1", "2", "3", "4", "5"]}, "margin"),
            ({"margin": {"header": {"middle": "1em"}}}, "margin.header"),
            ({"margin": True}, "margin"),
            ({"contributor-map": {"Jane": 1}}, "contributor-map.Jane"),
        ],
    )
    def test_malformed_values_raise(self, data: dict, key: str) -> None:
        """Test that wrong types raise ConfigInvalidError naming the key."""
        with pytest.raises(ConfigInvalidError) as exc_info:
            load_config_from_dict(data)

        assert exc_info.value.key == key
        assert key in str(exc_info.value)


class TestMergeTables:
    def test_override_wins_and_nested_merge(self) -> None:
        base = {"footer": True, "message": {"both": "B", "header": "H"}}
        override = {"footer": False, "message": {"header": "H2"}}

        merged = merge_tables(base, override)

        assert merged == {"footer": False, "message": {"both": "B", "header": "H2"}}
        assert base["message"]["header"] == "H"


class TestLoadConfig:
    """Tests for layered config loading."""

    def test_no_layers_gives_unset_config(self, tmp_path: Path) -> None:
        config = load_config(None, root=tmp_path)

        assert config.footer is None
        assert config.config_path is None

    def test_book_table_overrides_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "gitinfo.yaml").write_text(
            "footer: true\nheader: true\nmessage:\n  both: from-yaml\n  footer: yaml-footer\n"
        )

        config = load_config({"header": False, "message": {"both": "from-toml"}}, root=tmp_path)

        assert config.header is False
        assert config.footer is True
        assert config.message is not None
        assert config.message.both == "from-toml"
        assert config.message.footer == "yaml-footer"
        assert config.config_path == (tmp_path / "gitinfo.yaml").resolve()

    def test_yaml_env_substitution(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCS_BRANCH", "release")
        path = tmp_path / "custom.yaml"
        path.write_text("branch: ${DOCS_BRANCH}\n")

        config = load_config(None, root=tmp_path, config_path=path)

        assert config.branch == "release"

    def test_auto_discover_disabled(self, tmp_path: Path) -> None:
        (tmp_path / "gitinfo.yaml").write_text("header: true\n")

        config = load_config(None, root=tmp_path, auto_discover=False)

        assert config.header is None

    def test_missing_explicit_path_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigInvalidError, match="not found"):
            load_config(None, config_path=tmp_path / "missing.yaml")

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "gitinfo.yaml"
        path.write_text("header: [unclosed\n")

        with pytest.raises(ConfigInvalidError, match="cannot read"):
            load_config(None, root=tmp_path)

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        (tmp_path / "gitinfo.yaml").write_text("- just\n- a list\n")

        with pytest.raises(ConfigInvalidError, match="must contain a mapping"):
            load_config(None, root=tmp_path)

    def test_unset_env_var_in_yaml_raises(self, tmp_path: Path) -> None:
        (tmp_path / "gitinfo.yaml").write_text("tag: ${GITINFO_SURELY_UNSET_VAR}\n")

        with pytest.raises(ConfigInvalidError, match="GITINFO_SURELY_UNSET_VAR"):
            load_config(None, root=tmp_path)

    def test_default_config_round_trips(self, tmp_path: Path) -> None:
        """Test that the init template is itself a valid config."""
        (tmp_path / "gitinfo.yaml").write_text(create_default_config(), encoding="utf-8")

        config = load_config(None, root=tmp_path)

        assert config.footer is True
        assert config.header is False
        assert config.message is not None
        assert config.message.both == "{{date}}{{sep}}commit: {{hash}}"
        assert config.timezone == "local"
