"""Flask backend serving query-result resources over HTTP."""
