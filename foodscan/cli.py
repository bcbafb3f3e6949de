"""CLI entry point for foodscan."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from .camera import ProductCamera
from .config import ScanConfig, load_config


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="foodscan",
        description="商品スキャン — 写真から商品と栄養成分を推定し、リコール情報を確認します",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="設定ファイルのパス (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="詳細なログを表示"
    )

    sub = parser.add_subparsers(dest="command")

    # cameras
    sub.add_parser("cameras", help="利用可能なカメラ一覧を表示")

    # check
    sub.add_parser("check", help="APIキーと Firebase 設定を確認")

    # scan
    scan_parser = sub.add_parser("scan", help="撮影→商品解析→リコール確認→履歴保存")
    scan_parser.add_argument("--image", type=str, help="既存の画像ファイルを使用")
    scan_parser.add_argument(
        "--label", type=str, default="scan", help="撮影画像のファイル名に付けるラベル"
    )
    scan_parser.add_argument("--user", type=str, default=None, help="ユーザーID")
    scan_parser.add_argument("--json", action="store_true", help="JSON形式で出力")

    # history
    history_parser = sub.add_parser("history", help="スキャン履歴を表示")
    history_parser.add_argument("--user", type=str, default=None, help="ユーザーID")
    history_parser.add_argument("--json", action="store_true", help="JSON形式で出力")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    load_dotenv()

    config = load_config(args.config)

    match args.command:
        case "cameras":
            _cmd_cameras()
        case "check":
            _cmd_check(config)
        case "scan":
            asyncio.run(_cmd_scan(config, args))
        case "history":
            asyncio.run(_cmd_history(config, args))


def _cmd_cameras() -> None:
    cameras = ProductCamera.list_cameras()
    if not cameras:
        print("利用可能なカメラが見つかりませんでした。")
        return
    print(f"利用可能なカメラ: {len(cameras)} 台")
    for idx in cameras:
        print(f"  カメラ {idx}")


def _mark(ok: bool) -> str:
    return "✅" if ok else "❌"


def _cmd_check(config: ScanConfig) -> None:
    from .vision import create_backend

    try:
        backend = create_backend(config)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    fb = config.firebase
    print(f"Vision バックエンド: {config.vision.backend} ({backend.model})")
    print(f"  APIキー: {_mark(backend.has_credentials)}")
    print(f"ストレージ: {config.storage.backend} (prefix: {config.storage.prefix})")
    print(f"  Project ID: {fb.project_id or '❌ 未設定'}")
    print(f"  Storage Bucket: {fb.storage_bucket or '❌ 未設定'}")
    print(f"  認証情報: {fb.credentials_path or 'Application Default Credentials'}")
    remote = "Firestore" if config.history.remote else "ローカルのみ"
    print(f"履歴: {remote} / {config.history.db_path}")
    print(f"ユーザーID: {config.user_id or '未設定'}")

    if config.storage.backend == "firebase" and not (fb.project_id and fb.storage_bucket):
        print(
            "⚠️ Firebase の設定が不足しています。画像は data URI として送信されます。",
            file=sys.stderr,
        )
    if not backend.has_credentials:
        sys.exit(1)


def _get_image_path(config: ScanConfig, args) -> str:
    if args.image:
        return args.image
    camera = ProductCamera(
        camera_indices=config.camera.indices,
        save_dir=config.camera.save_dir,
        warmup_frames=config.camera.warmup_frames,
        jpeg_quality=config.camera.jpeg_quality,
    )
    print("📷 撮影中...", file=sys.stderr)
    capture = camera.capture_first(args.label)
    print(f"   保存しました: {capture.image_path}", file=sys.stderr)
    return capture.image_path


async def _cmd_scan(config: ScanConfig, args) -> None:
    from .scanner import create_scan_service

    try:
        image_path = _get_image_path(config, args)
    except (ImportError, RuntimeError) as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    service = create_scan_service(config)
    user_id = args.user or config.user_id or None

    print("🔍 商品を解析中...", file=sys.stderr)
    result = await service.process_image(image_path, user_id=user_id)

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        _print_scan(result)

    if result.analysis.is_unknown:
        sys.exit(2)


def _print_scan(result) -> None:
    analysis = result.analysis
    recall = result.recall_info

    print(f"\n🛒 {analysis.product_name}")
    print(f"   {analysis.description}")

    if analysis.nutritional_info:
        n = analysis.nutritional_info
        print("\n🥗 栄養成分:")
        print(f"  カロリー: {n.calories}")
        print(f"  脂質:     {n.fats}")
        print(f"  炭水化物: {n.carbs}")
        print(f"  たんぱく質: {n.proteins}")

    if recall.is_recalled:
        print("\n⚠️  リコール対象の商品です")
        print(f"  製造者: {recall.manufacturer}")
        print(f"  ロット番号: {recall.lot_number}")
        print(f"  リコール日: {recall.recall_date}")
        print(f"  理由: {recall.recall_reason}")
    elif recall.recall_reason:
        print(f"\nℹ️  {recall.recall_reason}")
    else:
        print("\n✅ リコール情報はありません")

    if result.saved:
        print("\n📝 スキャン履歴に保存しました")


async def _cmd_history(config: ScanConfig, args) -> None:
    from .history import create_history_store

    user_id = args.user or config.user_id
    if not user_id:
        print("ユーザーIDを --user または設定ファイルで指定してください。", file=sys.stderr)
        sys.exit(1)

    store = create_history_store(config)
    history = await store.list(user_id)

    if args.json:
        data = [d.to_dict() for d in history]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if not history:
        print("スキャン履歴はありません。")
        return

    print(f"スキャン履歴 ({len(history)} 件):")
    for d in history:
        mark = "⚠️ " if d.recall_info.is_recalled else "  "
        calories = d.nutritional_info.calories if d.nutritional_info else "-"
        print(
            f"{mark}{d.scan_date:%Y-%m-%d %H:%M}  "
            f"{d.recall_info.product_name:<30} {calories}"
        )
