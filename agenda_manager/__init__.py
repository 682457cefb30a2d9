# Agenda manager: personal agenda, content plan kanban, and DJ-linked views
#
# Components:
#   schema.py        - Data model (AgendaItem, ItemStatus, ItemPriority, ItemCategory, KanbanSettings)
#   storage.py       - SQLite slot store (JSON blobs keyed by slot name)
#   calendar_grid.py - Monday-first month grid for the personal agenda calendar
#   kanban.py        - Column projection by status / priority / category
#   views.py         - Day and list filtering with stable date/time sorting
#   agenda.py        - Controller owning both collections and the kanban settings
#   notifications.py - Short-lived user notifications
#   fetch.py         - Async fetch hook with last-request-wins ordering
#   services.py      - Events, DJs and notes data access
#   config.py        - YAML + environment configuration
#   client.py        - HTTP client for the agenda API
