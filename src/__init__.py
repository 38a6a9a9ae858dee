"""CRM agent tool pipeline.

This is the root package for the tool-execution and response-enhancement
layer behind a CRM assistant.

The system consists of several core components:
- tools: Tool registry, CRM mutation/search tools and the think tool
- services: Domain service interfaces the tools delegate to
- agent: Response parsing and suggested-action dispatch
- utils: Cross-cutting concerns including config, logging and storage
"""
