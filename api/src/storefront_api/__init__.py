"""HTTP API for the cocktail storefront fulfillment backend."""
