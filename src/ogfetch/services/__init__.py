"""Service layer: per-document and batch operations returning ServiceResult."""
