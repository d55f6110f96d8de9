"""
Live Resource Fetchers Package.

One module per cloud provider. Fetchers only read; they return a live
attribute dict, or ``None`` when the resource is missing or inaccessible.
SDK imports are deferred to the provider module so a run that only enables
AWS does not need the GCP or Azure libraries to be importable.
"""
