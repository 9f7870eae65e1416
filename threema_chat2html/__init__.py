"""Convert Threema chat archives to HTML."""
