import os
import sys

sys.path.insert(0, os.path.abspath(".."))

# -- Project information -----------------------------------------------------
project = "ChainVote"
author = "ChainVote contributors"
release = "0.1.0"

# -- General configuration ---------------------------------------------------
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
]
autodoc_mock_imports = ["google.generativeai"]
templates_path = ["_templates"]
exclude_patterns = ["_build"]
master_doc = "index"

# -- Options for HTML output -------------------------------------------------
html_theme = "alabaster"
html_static_path = []
