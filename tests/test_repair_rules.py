"""Tests for renovate_driver.repair.rules (pure text rewrites, no network)."""

import yaml

from renovate_driver.repair.rules import (
    bump_pnpm_setup_version,
    remove_deprecated_pnpm_options,
    remove_unused_import,
    tidy_blank_lines,
)

PROJENRC = """import { javascript } from 'projen';
import { clickupCdk } from '@time-loop/clickup-projen';

const project = new clickupCdk.ClickUpCdkTypeScriptApp({
  name: 'my-app',
  packageManager: javascript.NodePackageManager.PNPM,
  pnpmVersion: '7',
  deps: ['@time-loop/cdk-library'],
});
project.synth();
"""

PROJENRC_FIXED = """import { clickupCdk } from '@time-loop/clickup-projen';

const project = new clickupCdk.ClickUpCdkTypeScriptApp({
  name: 'my-app',
  deps: ['@time-loop/cdk-library'],
});
project.synth();
"""

BUILD_WORKFLOW = """name: build
on:
  pull_request: {}
jobs:
  build:
    runs-on: ubuntu-latest
    steps:
      - name: Checkout
        uses: actions/checkout@v4
      - name: Setup pnpm
        uses: pnpm/action-setup@v2.2.4
        with:
          version: "8"
      - name: Setup Node.js
        uses: actions/setup-node@v4
        with:
          version: "8"
"""


class TestRemoveDeprecatedPnpmOptions:
    def test_removes_options_and_unused_import(self) -> None:
        removal = remove_deprecated_pnpm_options(PROJENRC)
        assert removal is not None
        assert removal.pinned_version == "7"
        assert removal.text == PROJENRC_FIXED

    def test_no_marker_returns_none(self) -> None:
        assert remove_deprecated_pnpm_options(PROJENRC_FIXED) is None

    def test_idempotent(self) -> None:
        removal = remove_deprecated_pnpm_options(PROJENRC)
        assert remove_deprecated_pnpm_options(removal.text) is None

    def test_keeps_import_still_in_use(self) -> None:
        text = PROJENRC.replace(
            "  deps: ['@time-loop/cdk-library'],\n",
            "  deps: ['@time-loop/cdk-library'],\n  npmAccess: javascript.NpmAccess.PUBLIC,\n",
        )
        removal = remove_deprecated_pnpm_options(text)
        assert removal is not None
        assert removal.text.startswith("import { javascript } from 'projen';\n")
        assert "packageManager" not in removal.text
        assert "pnpmVersion" not in removal.text

    def test_without_version_pin(self) -> None:
        text = PROJENRC.replace("  pnpmVersion: '7',\n", "")
        removal = remove_deprecated_pnpm_options(text)
        assert removal is not None
        assert removal.pinned_version is None
        assert removal.text == PROJENRC_FIXED

    def test_double_quoted_pin(self) -> None:
        removal = remove_deprecated_pnpm_options(PROJENRC.replace("'7'", '"8"'))
        assert removal.pinned_version == "8"

    def test_blank_lines_left_by_removal_are_cleaned(self) -> None:
        text = """import { javascript } from 'projen';
import { clickupCdk } from '@time-loop/clickup-projen';

const project = new clickupCdk.ClickUpCdkTypeScriptApp({

  packageManager: javascript.NodePackageManager.PNPM,
  name: 'my-app',
  deps: ['@time-loop/cdk-library'],

  pnpmVersion: '7',
});
project.synth();
"""
        removal = remove_deprecated_pnpm_options(text)
        assert removal.text == PROJENRC_FIXED

    def test_blank_lines_away_from_removal_are_kept(self) -> None:
        untouched = "\nconst other = f({\n\n  a: 1,\n\n});\n"
        removal = remove_deprecated_pnpm_options(PROJENRC + untouched)
        assert removal.text == PROJENRC_FIXED + untouched


class TestRemoveUnusedImport:
    def test_removes_when_unused(self) -> None:
        text = "import { javascript } from 'projen';\nconst x = 1;\n"
        assert remove_unused_import(text, "javascript") == "const x = 1;\n"

    def test_keeps_when_referenced(self) -> None:
        text = "import { javascript } from 'projen';\nconst x = javascript.NpmAccess.PUBLIC;\n"
        assert remove_unused_import(text, "javascript") is None

    def test_word_boundary(self) -> None:
        text = "import { javascript } from 'projen';\nconst javascriptish = 1;\n"
        assert remove_unused_import(text, "javascript") == "const javascriptish = 1;\n"

    def test_no_import(self) -> None:
        assert remove_unused_import("const x = 1;\n", "javascript") is None


class TestTidyBlankLines:
    def test_collapses_three_or_more_at_seam(self) -> None:
        assert tidy_blank_lines("a\n\n\n\nb\n", [3]) == "a\n\nb\n"

    def test_keeps_two_blank_lines(self) -> None:
        assert tidy_blank_lines("a\n\n\nb\n", [2]) == "a\n\n\nb\n"

    def test_no_seams_no_change(self) -> None:
        assert tidy_blank_lines("a\n\n\n\nb\n", []) == "a\n\n\n\nb\n"

    def test_blank_after_open_brace(self) -> None:
        assert tidy_blank_lines("x({\n\n  a: 1,\n})\n", [4]) == "x({\n  a: 1,\n})\n"

    def test_blank_before_close_brace(self) -> None:
        text = "x({\n  a: 1,\n\n})\n"
        assert tidy_blank_lines(text, [text.index("})")]) == "x({\n  a: 1,\n})\n"

    def test_blank_before_close_bracket(self) -> None:
        text = "[\n  'a',\n\n]\n"
        assert tidy_blank_lines(text, [text.index("]")]) == "[\n  'a',\n]\n"

    def test_only_the_run_at_the_seam_changes(self) -> None:
        assert tidy_blank_lines("x({\n\n  a: 1,\n\n})\n", [4]) == "x({\n  a: 1,\n\n})\n"


class TestBumpPnpmSetupVersion:
    def test_rewrites_only_pnpm_step(self) -> None:
        new_text = bump_pnpm_setup_version(BUILD_WORKFLOW)
        assert new_text is not None
        assert "uses: pnpm/action-setup@v2.2.4\n        with:\n          version: 9\n" in new_text
        # setup-node keeps its quoted value
        assert new_text.count('version: "8"') == 1
        assert yaml.safe_load(new_text)["jobs"]["build"]["steps"][1]["with"]["version"] == 9

    def test_idempotent(self) -> None:
        new_text = bump_pnpm_setup_version(BUILD_WORKFLOW)
        assert bump_pnpm_setup_version(new_text) is None

    def test_single_quotes_and_sibling_keys(self) -> None:
        text = (
            "      - uses: pnpm/action-setup@v2\n"
            "        with:\n"
            "          run_install: false\n"
            "          version: '8'\n"
        )
        assert bump_pnpm_setup_version(text) == (
            "      - uses: pnpm/action-setup@v2\n"
            "        with:\n"
            "          run_install: false\n"
            "          version: 9\n"
        )

    def test_other_version_untouched(self) -> None:
        assert bump_pnpm_setup_version(BUILD_WORKFLOW.replace('"8"', '"7"')) is None

    def test_custom_versions(self) -> None:
        text = BUILD_WORKFLOW.replace('version: "8"', 'version: "9"', 1)
        new_text = bump_pnpm_setup_version(text, old_version="9", new_version="10")
        assert "version: 10\n" in new_text
