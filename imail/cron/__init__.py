"""Cron spec parsing, schedules and a threaded job runner."""