"""OpenAPI parser -- load documents, resolve ``$ref`` pointers, and build trees.

This sub-package turns a raw OpenAPI 3.x document (JSON or YAML) into an
:class:`~reqtree.parser.importer.ImportResult`: a saved-request tree and the
list of servers it declares.

Typical usage::

    from reqtree.parser import import_openapi

    result = import_openapi(Path("openapi.yaml").read_text())
    result.root.children   # tag folders, then untagged requests
    result.servers         # ServerEntry list

Sub-modules:

* :mod:`~reqtree.parser.loader` -- text and file parsing plus version checks.
* :mod:`~reqtree.parser.resolver` -- depth-capped ``$ref`` resolution.
* :mod:`~reqtree.parser.examples` -- example selection and schema synthesis.
* :mod:`~reqtree.parser.importer` -- document walk and tree assembly.
"""

from reqtree.parser.importer import ImportResult, build_tree_from_openapi, import_openapi
from reqtree.parser.loader import format_hint, parse_document, validate_openapi_version

__all__ = [
    "ImportResult",
    "build_tree_from_openapi",
    "format_hint",
    "import_openapi",
    "parse_document",
    "validate_openapi_version",
]
