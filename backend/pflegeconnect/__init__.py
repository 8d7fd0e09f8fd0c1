"""Discovery & engagement engine for the Pflege Connect marketplace."""
