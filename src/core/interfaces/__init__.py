"""Contratos (Protocol) de los colaboradores externos del Core.

Por qué:
- El refresh de sesión y la navegación al login los implementa la capa de
  auth/UI; el Core solo depende de su forma y los tests usan stubs.
"""
