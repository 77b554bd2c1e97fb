"""
File Ingestion Collectors

Long-running pieces that notice files and hand them downstream:
- directory_watcher.py - watchdog observer reporting added files
- inbound_file_adapter.py - Lifecycle, trigger intake and stream emission
- sinks.py - Default downstream consumer that drains and logs streams
"""
