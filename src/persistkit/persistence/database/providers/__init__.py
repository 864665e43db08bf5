"""Built-in database backends, discovered by the ``persistkit.persistence.database.providers.*`` pattern."""
