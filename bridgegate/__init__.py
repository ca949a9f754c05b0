"""
Bridgegate

Validator-quorum-gated cross-chain asset bridge.

Core imports are lazily loaded. For direct module access, import from
submodules:

    from bridgegate.bridge import BridgeProxy, deploy_bridge
    from bridgegate.crypto import PrivateKey, sign_message
    from bridgegate.exceptions import BridgeError
"""

__version__ = "1.0.0"


def __getattr__(name):
    """Lazy module loading keeps `import bridgegate` free of logging setup."""
    if name == 'BridgeProxy':
        from .bridge import BridgeProxy
        return BridgeProxy
    elif name == 'deploy_bridge':
        from .bridge import deploy_bridge
        return deploy_bridge
    elif name == 'BridgeError':
        from .exceptions import BridgeError
        return BridgeError
    raise AttributeError(f"module 'bridgegate' has no attribute {name!r}")

__all__ = ['BridgeProxy', 'deploy_bridge', 'BridgeError', '__version__']
