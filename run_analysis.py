#!/usr/bin/env python3
"""Analyze a resume and suggest matching jobs from the command line.

    python run_analysis.py resume.pdf --role "Frontend Developer" --jobs
    python run_analysis.py --text "$(cat resume.txt)" --role "Data Scientist"
    python run_analysis.py --search "Data Scientist" --location Remote
    python run_analysis.py --history alice
"""
from __future__ import annotations

import argparse
import asyncio
import json
import mimetypes
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from skillsynx.config import ensure_dirs, load_settings
from skillsynx.log import get_logger
from skillsynx.models import ResumeDocument, SessionContext
from skillsynx.oracle import GroqOracle
from skillsynx.pipeline import AnalysisPipeline, MatchingPipeline, PipelineRun
from skillsynx.report import (
    build_analysis_report,
    build_history_report,
    build_jobs_report,
    write_report,
)
from skillsynx.storage import FileStore

log = get_logger(__name__)


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="SkillSynx resume analyzer")
    source = p.add_mutually_exclusive_group()
    source.add_argument("resume", nargs="?", type=Path, help="resume file (PDF, DOCX, TXT, MD)")
    source.add_argument("--text", help="pasted resume text")
    source.add_argument("--search", metavar="ROLE", help="job search only, without an analysis")
    source.add_argument("--history", metavar="USER", help="list saved analyses for USER")
    p.add_argument("--role", default="", help="target role")
    p.add_argument("--jobs", action="store_true", help="also suggest matching jobs")
    p.add_argument("--location", default="", help="location preference for job search")
    p.add_argument("--salary", default="", help="salary expectation for job search")
    p.add_argument("--user", default="", help="save the analysis under this user id")
    p.add_argument("--json", action="store_true", help="print JSON instead of Markdown")
    p.add_argument("--save-report", action="store_true", help="also write the report to reports/")
    return p


def _fail(run: PipelineRun) -> int:
    err = run.error
    print(f"\n  ✗ {err.user_message if err else 'Failed'}")
    if err:
        print(f"    ({err})")
    return 1


async def _main(args: argparse.Namespace) -> int:
    settings = load_settings()
    ensure_dirs(settings)
    store = FileStore(settings.data_dir)

    if args.history:
        try:
            records = store.list_analyses(args.history)
        except ValueError as exc:
            print(f"  ✗ {exc}")
            return 1
        if args.json:
            print(json.dumps([r.to_dict() for r in records], indent=2))
        else:
            print(build_history_report(records))
        return 0

    oracle = GroqOracle(settings)
    outputs: list[str] = []
    payload: dict = {}
    analysis = None
    resume_text = args.text

    if args.resume or args.text:
        pipeline = AnalysisPipeline(oracle, settings, gateway=store)
        context = SessionContext(user_id=args.user or None)
        if args.user:
            try:
                store.initialize_user(args.user)
            except ValueError as exc:
                print(f"  ✗ {exc}")
                return 1
        if args.resume:
            if not args.resume.is_file():
                print(f"  ✗ File not found: {args.resume}")
                return 1
            mime, _ = mimetypes.guess_type(args.resume.name)
            doc = ResumeDocument.from_path(args.resume, mime_type=mime)
            run = await pipeline.analyze_document(doc, args.role, context)
        else:
            run = await pipeline.analyze_text(args.text, args.role, context)
        if not run.ok:
            return _fail(run)
        analysis = run.result
        payload["analysis"] = run.record.to_dict() if run.record else analysis.to_dict()
        outputs.append(build_analysis_report(analysis, args.role or None))
        if run.persist_error:
            log.warning("Analysis not saved: %s", run.persist_error)

    if args.search or args.jobs:
        role = args.search or args.role
        matcher = MatchingPipeline(oracle, settings)
        run = await matcher.search(
            role,
            analysis,
            resume_text=resume_text,
            location=args.location,
            salary=args.salary,
        )
        if not run.ok:
            return _fail(run)
        payload["jobs"] = [job.to_dict() for job in run.result]
        outputs.append(build_jobs_report(run.result, role or settings.default_role))

    if not outputs:
        print("  Nothing to do — pass a resume file, --text, --search or --history.")
        return 2

    report = "\n\n".join(outputs)
    if args.save_report:
        write_report(report, args.role or args.search or "analysis")
    print(json.dumps(payload, indent=2) if args.json else report)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(_main(_parser().parse_args())))
