"""
VisaPath Skilled-Visa Eligibility Assessment — Production Package
==================================================================
Hexagonal (Ports & Adapters) architecture.

Layer map
─────────────────────────────────────────────────────
  config/       All tuneable settings & prompt strings
  domain/       Pure business objects (models, exceptions) — no I/O
  ports/        Abstract interfaces (Python Protocols)
  adapters/     Concrete implementations of each Port (DeepSeek, OpenAI, Postgres)
  services/     Normaliser, points model, remote scorer, assessment engine
  interfaces/   Delivery layer: CLI
  tests/        Full test suite: unit / integration / e2e

Swapping any external dependency (LLM provider, data store):
  1. Write a new adapter in adapters/ implementing the relevant Port
  2. Change the single wiring line in services/container.py
  3. Done — zero other files touched
"""
__version__ = "1.0.0"
