# Lightweight shim for Vercel Cron

from brazesync.cron.daily_import import _run  # noqa: WPS450

# Vercel invokes the default exportable object – we expose it as an async handler
# that simply reuses the existing coroutine.

def handler(_req, _res):  # type: ignore[unused-argument]
    import asyncio
    failed = asyncio.run(_run())
    return {"status": "partial" if failed else "ok", "failed": failed}
