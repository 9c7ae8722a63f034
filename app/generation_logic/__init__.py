"""Generation logic package.

This package groups the helper functions that orchestrate the upload and
download workflows (spreadsheet validation, processing stream with progress,
report rendering and packaging) together with the fixed document text.
Keeping them here allows `app/api/routes.py` to stay minimal and focused on
HTTP routing. Import helpers from their modules directly; the renderers import
`static_content` from this package.
"""
