# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import pytest

VALID_DOCUMENT = """\
module "extract" {
  contract: { input: String, output: Facts }
  runtime: { model: "small" }
}

module "report" {
  contract: { input: Facts, output: String }
}

pipeline "digest" {
  let facts = run extract(input.text)
  run report(facts)
}
"""

INVALID_DOCUMENT = """\
module "extract" {
  contract: { input: String, output: Facts }
}

pipeline "digest" {
  let facts = run extract(input.text)
  run reprot(fcts)
}
"""


@pytest.fixture
def documents_dir(tmp_path):
    """Directory holding one valid and one invalid document, plus an unrelated file."""
    root = tmp_path / "documents"
    (root / "nested").mkdir(parents=True)
    (root / "valid.hapf").write_text(VALID_DOCUMENT)
    (root / "nested" / "invalid.hapf").write_text(INVALID_DOCUMENT)
    (root / "README.md").write_text("module broken {")
    return root
