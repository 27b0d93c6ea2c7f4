"""Flowchart DSL vocabulary shared by the parser and the serializer."""
