"""Dominio del cliente casewhr.

Por qué:
- Modelos congelados (Pydantic v2) para credenciales, descriptores de request,
  planes de milestones y payloads de propuestas.
- La taxonomía de errores vive junto a los modelos; el dominio no conoce HTTP
  ni la CLI.
"""
