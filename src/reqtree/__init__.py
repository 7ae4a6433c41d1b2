"""reqtree -- a saved-request collection engine with OpenAPI interchange.

This package is the engine behind an API-testing workbench. It keeps a
hierarchical collection of saved HTTP requests, imports and exports that
collection as an OpenAPI 3.x document, and compiles a saved request plus a
selected server/auth configuration into a literal HTTP call.

Typical workflow::

    reqtree import openapi.yaml      # load a collection from a document
    reqtree tree                     # inspect the collection
    reqtree send 0.1 --server 0      # compile and send one saved request
    reqtree export collection.yaml   # write the collection back out

Modules:
    models: Pydantic models for the tree, requests, servers and auth.
    tree: Reducer-style tree mutation operations.
    parser: OpenAPI document loading, ``$ref`` resolution and import.
    exporter: Tree -> OpenAPI document export.
    client: Request compiler, transports and sender.
    workspace: The aggregate owning the tree and the server list.
    app: Typer application factory and CLI entry point.
"""

__version__ = "0.3.0"
