"""Spirit Bid: client core for the auction marketplace API."""
