"""
modpack — modular runtime distribution packager.

Installs versioned artifacts into a module tree (fat) or records them as
repository references (thin), applying namespace transformation where the
build asks for it.
"""

__version__ = "0.1.0"
