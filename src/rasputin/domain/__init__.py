"""Request/reply bridge core: errors, broker port, reply channels, bridge."""
