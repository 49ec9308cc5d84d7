import asyncio

from hireos.services.effects import Effect, run_effects


def test_failures_are_isolated_and_reported():
    calls = []

    async def ok():
        calls.append("ok")
        return {"messageId": "m-1"}

    async def boom():
        calls.append("boom")
        raise RuntimeError("provider down")

    async def nothing():
        calls.append("nothing")

    report = asyncio.run(run_effects([
        Effect(name="email:offer", run=ok, meta={"to": "jane@acme-mail.com"}),
        Effect(name="slack:offer_sent", run=boom),
        Effect(name="workflow", run=nothing),
    ]))

    assert sorted(calls) == ["boom", "nothing", "ok"]
    assert not report.ok
    assert [r.name for r in report.failures] == ["slack:offer_sent"]

    listed = report.to_list()
    assert listed[0] == {
        "name": "email:offer",
        "ok": True,
        "data": {"to": "jane@acme-mail.com", "messageId": "m-1"},
    }
    assert listed[1] == {"name": "slack:offer_sent", "ok": False, "error": "provider down"}
    assert listed[2] == {"name": "workflow", "ok": True}


def test_no_effects_gives_empty_report():
    report = asyncio.run(run_effects([]))
    assert report.ok
    assert report.to_list() == []
