"""QLedger services."""
