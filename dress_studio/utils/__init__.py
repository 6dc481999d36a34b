"""Pure helpers: image payloads, compression, attribute parsing."""
