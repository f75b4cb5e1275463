"""tasks/ -- Task records, their persistence, and the ownership rule.

Layer rule: tasks/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or auth/.
"""
