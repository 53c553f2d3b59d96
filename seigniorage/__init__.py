"""
Seigniorage Protocol Package

An algorithmic multi-token monetary policy (cash, bond, share) simulated on
an in-process ledger. Core imports are lazily loaded; for direct module
access, import from submodules:

    from seigniorage.protocol import deploy_protocol
    from seigniorage.treasury import Treasury
    from seigniorage.exceptions import ProtocolError
"""

__version__ = "0.1.0"


# Lazy imports keep `import seigniorage` from configuring logging
def __getattr__(name):
    """Lazy module loading."""
    if name == 'Chain':
        from .chain import Chain
        return Chain
    elif name == 'Protocol':
        from .protocol import Protocol
        return Protocol
    elif name == 'deploy_protocol':
        from .protocol import deploy_protocol
        return deploy_protocol
    elif name == 'load_config':
        from .config import load_config
        return load_config
    elif name == 'ProtocolError':
        from .exceptions import ProtocolError
        return ProtocolError
    raise AttributeError(f"module 'seigniorage' has no attribute {name!r}")

__all__ = ['Chain', 'Protocol', 'deploy_protocol', 'load_config', 'ProtocolError']
