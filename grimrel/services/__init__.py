"""Release services: version resolution and the build/package/publish pipeline."""
