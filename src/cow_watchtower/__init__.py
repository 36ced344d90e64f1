"""
CoW Protocol Conditional Order Watchtower.

Watches ComposableCoW authorizations on-chain, keeps a registry of conditional
orders per owner, and turns them into discrete orders on the CoW Protocol
order book whenever the handler says they are tradeable. Settlement events
mark submitted orders as filled.
"""

__version__ = "0.1.0"
