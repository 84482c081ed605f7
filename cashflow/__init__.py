"""Cash-flow attribution, budget allocation and transaction matching service."""
