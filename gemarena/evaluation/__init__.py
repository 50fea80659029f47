"""Result contracts, seed ranges and the historical baseline archive."""
