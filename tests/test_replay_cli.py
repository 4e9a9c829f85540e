"""Replay CLI tests."""

import json

from jobs.replay import main

from conftest import NOW_MS


class TestReplayCli:

    def test_single_push(self, tmp_path, capsys, raw_push):
        path = tmp_path / "push.json"
        path.write_text(json.dumps(raw_push), encoding="utf-8")

        assert main([str(path), "--now-ms", str(NOW_MS)]) == 0

        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 1
        snapshot = json.loads(lines[0])
        assert snapshot["anchors"] == {"short": 1000, "long": 1000}
        assert snapshot["computed_at_ms"] == NOW_MS
        assert snapshot["short"]["summary"]["effective_avg"] == 30.0

    def test_list_of_pushes_last_only(self, tmp_path, capsys, raw_push):
        second = json.loads(json.dumps(raw_push))
        second["short_window_sample"] = {}
        path = tmp_path / "pushes.json"
        path.write_text(json.dumps([raw_push, second]), encoding="utf-8")

        assert main([str(path), "--now-ms", str(NOW_MS), "--last-only"]) == 0

        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 1
        snapshot = json.loads(lines[0])
        assert snapshot["anchors"]["short"] == 999
        # carried over from the first push
        assert snapshot["short"]["closest"]["effective_hashrate"] == 60.0

    def test_rejected_push_exits_nonzero(self, tmp_path, capsys, raw_push):
        del raw_push["overall"]
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(raw_push), encoding="utf-8")

        assert main([str(path)]) == 1
        assert capsys.readouterr().out == ""
