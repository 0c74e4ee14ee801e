"""Tests for the import extension auditor."""

from cleaner.audit.parser import parse_source
from cleaner.auditors.imports import ImportsAuditor, find_relative_specifiers


class TestFindRelativeSpecifiers:
    """Tests for specifier discovery."""

    def test_static_reexport_and_dynamic(self):
        """Test that every form of relative specifier is found, in order."""
        tree = parse_source(
            "import a from './a';\n"
            "import pkg from 'pkg';\n"
            "export { b } from '../b.js';\n"
            "const c = () => import('./c');\n"
        )

        assert [s.value for s in find_relative_specifiers(tree)] == ["./a", "../b.js", "./c"]
        assert [s.line for s in find_relative_specifiers(tree)] == [1, 3, 4]


class TestImportsAuditor:
    """Tests for reporting and repairing extensionless imports."""

    def test_analyze(self, make_project):
        """Test the suggested corrections."""
        root = make_project({
            "src/main.js": (
                "import { a } from './a';\n"
                "import { u } from './utils';\n"
                "import data from './data.json';\n"
                "import lodash from 'lodash';\n"
            ),
            "src/a.js": "export const a = 1;\n",
            "src/utils/index.js": "export const u = 1;\n",
        })

        result = ImportsAuditor(root).audit()

        messages = [i.message for f in result.files for i in f.issues]
        assert messages == ["./a → ./a.js", "./utils → ./utils/index.js"]

    def test_repair_keeps_quotes(self, make_project):
        """Test that the rewrite only touches the specifier text."""
        content = 'import { a } from "./a";\nconst b = import("./b");\n'
        root = make_project({"main.js": content})
        auditor = ImportsAuditor(root)

        repaired = auditor.repair(content, "main.js", root / "main.js")

        assert repaired.fixed
        assert repaired.fix_count == 2
        assert repaired.result == 'import { a } from "./a.js";\nconst b = import("./b.js");\n'

    def test_complete_specifiers_untouched(self, tmp_path):
        """Test that specifiers with a known extension need nothing."""
        content = "import './style.css';\nimport a from './a.mjs';\n"

        repaired = ImportsAuditor(tmp_path).repair(content, "main.js", tmp_path / "main.js")

        assert not repaired.fixed
        assert repaired.result == content

    def test_parent_directory_without_index_reported_not_rewritten(self, make_project):
        """Test that `..` and `./` are never glued to the extension."""
        content = "import x from '..';\nimport y from './';\n"
        root = make_project({"lib/sub/b.js": content})
        auditor = ImportsAuditor(root)

        repaired = auditor.repair(content, "lib/sub/b.js", root / "lib/sub/b.js")
        issues = auditor.analyze(content, "lib/sub/b.js", root / "lib/sub/b.js")

        assert not repaired.fixed
        assert repaired.result == content
        assert [i.message for i in issues] == [
            "..: directory without index.js",
            "./: directory without index.js",
        ]

    def test_parent_directory_with_index(self, make_project):
        """Test that a directory specifier points at its index file."""
        content = "import x from '..';\n"
        root = make_project({"lib/sub/b.js": content, "lib/index.js": "export default 1;\n"})

        repaired = ImportsAuditor(root).repair(content, "lib/sub/b.js", root / "lib/sub/b.js")

        assert repaired.fixed
        assert repaired.result == "import x from '../index.js';\n"
