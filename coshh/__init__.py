# coshh/__init__.py
