"""HTTP adapters: query serialization and the content API request engine."""
