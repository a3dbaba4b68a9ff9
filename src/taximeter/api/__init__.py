"""HTTP control surface for the fare meter."""
