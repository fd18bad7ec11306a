"""booksync - Copy new documents from local folders to an e-reader."""
