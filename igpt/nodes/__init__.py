"""Gateway-backed nodes and the registry the host discovers them through."""

from igpt.nodes.base import GatewayNode, SupplyData
from igpt.nodes.chat import LmChatIGpt
from igpt.nodes.credential_type import IGptApiCredentialType
from igpt.nodes.embeddings import EmbeddingsIGpt

NODE_TYPES: dict[str, type[GatewayNode]] = {
    LmChatIGpt.name: LmChatIGpt,
    EmbeddingsIGpt.name: EmbeddingsIGpt,
}

CREDENTIAL_TYPES = {
    IGptApiCredentialType.name: IGptApiCredentialType,
}


def get_node_type(name: str) -> type[GatewayNode]:
    """Look up a node class by its registered name."""
    try:
        return NODE_TYPES[name]
    except KeyError:
        raise KeyError(
            f"Unknown node type '{name}'. Available: {', '.join(sorted(NODE_TYPES))}"
        ) from None


__all__ = [
    "CREDENTIAL_TYPES",
    "EmbeddingsIGpt",
    "GatewayNode",
    "IGptApiCredentialType",
    "LmChatIGpt",
    "NODE_TYPES",
    "SupplyData",
    "get_node_type",
]
