"""Optional argument types; import ``cmdwire.extras.arguments`` to register them."""
