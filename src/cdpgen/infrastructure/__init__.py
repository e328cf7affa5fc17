"""Infrastructure layer — schema files, templates, emitter, graph, filesystem.

This layer depends on stdlib, the domain layer and third-party libs
(Jinja2, ruamel.yaml, NetworkX). It must never import from services,
commands, or output. The service layer sequences the pipeline.
"""
