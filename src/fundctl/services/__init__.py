"""Service layer — funding logic returning ServiceResult at the run boundary.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
