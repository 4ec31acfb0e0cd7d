from .contact_alias import ContactAlias
from .settlement import Settlement

__all__ = ["Settlement", "ContactAlias"]
