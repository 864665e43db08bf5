"""Built-in file formats, discovered by the ``persistkit.persistence.file.providers.*`` pattern."""
