# review/catalog.py
"""
Rule catalog.

- Each rule carries a pure predicate over one inventory record and localized text.
- Predicates read string-encoded integer flag columns. A flag that is missing or
  not numeric parses to NaN, and NaN never equals 1, so such rows are flagged.
- validate_catalog is the startup self-check run before any evaluation.
"""

import math
import re
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from review.config import SUPPORTED_LANGUAGES
from review.models import Record, Rule
from review.errors import CatalogError, UnknownRule

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)", re.ASCII)

# --- Pure predicate helpers ------------------------------------------------

def to_number(value: Optional[str]) -> float:
    """
    Parse the leading integer of a flag value.

    "1" -> 1, " 2 zones" -> 2, "1.9" -> 1; missing or non-numeric -> NaN.
    """
    if value is None:
        return math.nan
    m = _INT_PREFIX.match(str(value))
    if not m:
        return math.nan
    return float(int(m.group(1)))


def flag_not_set(column: str) -> Callable[[Record], bool]:
    """
    Violation when `column` is not exactly 1.
    """
    def predicate(record: Record) -> bool:
        return to_number(record.get(column)) != 1
    predicate.__name__ = f"flag_not_set_{column}"
    return predicate


def exactly_one_of(column: str, na_column: str) -> Callable[[Record], bool]:
    """
    Violation when `column + na_column` is not 1.

    Models "the flag or its not-applicable counterpart must be set, but not both".
    """
    def predicate(record: Record) -> bool:
        return to_number(record.get(column)) + to_number(record.get(na_column)) != 1
    predicate.__name__ = f"exactly_one_of_{column}_{na_column}"
    return predicate

# --- Rules -----------------------------------------------------------------

def _link(url: str) -> str:
    return f'<a href="{url}" target="_blank">{url}</a>'


_RULE_LIST: List[Rule] = [
    Rule(
        name="OtherSku",
        issue={
            "ja": "プロダクション環境で推奨されない SKU を使用している",
            "en": "Using a SKU that is not recommended for production",
        },
        comment={
            "ja": "Basic や Share 等のプロダクション環境に適さない SKU を利用されています。可用性やパフォーマンスにおいて問題が発生する可能性があります。",
            "en": "A SKU such as Basic or Shared that is not suited to production is in use. Availability or performance problems may occur.",
        },
        recommendation={
            "ja": "上位の SKU への変更をご検討ください。上位の SKU への変更は構成変更や追加のコストが発生する可能性があります。",
            "en": "Consider moving to a higher SKU. Changing the SKU may require configuration changes and incur additional cost.",
        },
        priority=0,
        predicate=flag_not_set("OtherSku"),
    ),
    Rule(
        name="NoAZorAS",
        issue={
            "ja": "可用性ゾーンもしくは可用性セットを利用していない",
            "en": "Not using availability zones or an availability set",
        },
        comment={
            "ja": "可用性ゾーンや可用性セットを利用していない場合、ホスト障害やメンテナンスによって仮想マシンにダウンタイムが発生します。",
            "en": "Without availability zones or an availability set, host failures and maintenance cause virtual machine downtime.",
        },
        recommendation={
            "ja": "可用性ゾーンもしくは可用性セットの利用を検討してください。可用性ゾーンが利用できるリージョンの場合は、可用性ゾーンを優先して検討します。可用性ゾーン、可用性セットを利用した場合でも自動的にワークロードが冗長化されることはありません。ワークロードに適した冗長化構成を検討する必要があります。",
            "en": "Consider using availability zones or an availability set, preferring availability zones where the region supports them. Neither makes a workload redundant automatically; design a redundancy configuration that suits the workload.",
        },
        priority=0,
        predicate=exactly_one_of("AvZoneCount", "AvSetCount"),
    ),
    Rule(
        name="NoAZ",
        issue={
            "ja": "可用性ゾーンが使用されていない",
            "en": "Availability zones are not used",
        },
        comment={
            "ja": "現在のリソースが可用性ゾーンを使用していない場合、単一のデータセンター内での障害がリソースに影響を与える可能性があります。",
            "en": "If the resource does not use availability zones, a failure within a single datacenter can affect it.",
        },
        recommendation={
            "ja": "可用性ゾーンを使用してリソースをデプロイすることを検討してください。可用性ゾーンを使用することで、データセンター内の障害からリソースを保護し、サービスの可用性を向上させることができます。可用性ゾーンを使用する際には追加のコストがかかる場合がありますので、事前に確認してください。",
            "en": "Consider deploying the resource across availability zones to protect it from datacenter failures and improve availability. Zonal deployments may incur additional cost, so check beforehand.",
        },
        priority=0,
        predicate=exactly_one_of("AvZoneCount", "NAAvZoneCount"),
    ),
    Rule(
        name="NoUsePremorUltOSDisk",
        issue={
            "ja": "Premium ディスクもしくはUltraディスクを利用していない",
            "en": "Not using Premium or Ultra disks",
        },
        comment={
            "ja": "Premium ディスクや Ultra ディスクを利用していない場合、ストレージのパフォーマンスや SLA に影響する可能性があります。",
            "en": "Without Premium or Ultra disks, storage performance and the SLA may be affected.",
        },
        recommendation={
            "ja": "Premium ディスクもしくは Ultra ディスクの利用を検討してください。ディスク SKU の変更は追加のコストが発生する可能性があるため事前に確認することをお勧めします。",
            "en": "Consider using Premium or Ultra disks. Changing the disk SKU may incur additional cost, so check beforehand.",
        },
        priority=0,
        predicate=flag_not_set("PremorUltOSDiskCount"),
    ),
    Rule(
        name="RunningState",
        issue={
            "ja": "起動状態もしくはプロビジョニング状態が失敗している",
            "en": "Power state or provisioning state has failed",
        },
        comment={
            "ja": "リソースの起動状態、プロビジョニング状態が失敗状態です。サービスが正しく動作していない可能性があります。",
            "en": "The resource's power state or provisioning state is failed. The service may not be working correctly.",
        },
        recommendation={
            "ja": "リソースの状態を確認しトラブルシューティングをしてください。必要に応じてサポートへお問い合わせください。",
            "en": "Check the resource state and troubleshoot. Contact support if needed.",
        },
        priority=0,
        predicate=flag_not_set("RunningState"),
    ),
    Rule(
        name="NoHealthyBackup",
        issue={
            "ja": "バックアップが有効になっていない",
            "en": "Backup is not enabled",
        },
        comment={
            "ja": "バックアップが有効になっていない場合、障害や予期しないオペレーションによってデータが破損した場合に復旧できない可能性があります。",
            "en": "Without backup, data corrupted by a failure or an unexpected operation may not be recoverable.",
        },
        recommendation={
            "ja": "バックアップを有効にすることを検討してください。また取得したバックアップを使用し、リカバリできることを定期的に確認してください。バックアップを有効にすることで追加のコストが発生する可能性があるため事前に確認することをお勧めします。",
            "en": "Consider enabling backup, and regularly verify that you can recover from the backups taken. Enabling backup may incur additional cost, so check beforehand.",
        },
        priority=2,
        predicate=flag_not_set("HealthyBackupCount"),
    ),
    Rule(
        name="LowCapacity",
        issue={
            "ja": "インスタンス数が 2 以上ではない",
            "en": "Instance count is less than 2",
        },
        comment={
            "ja": "単一のインスタンスで稼働している場合、障害やメンテナンスによってダウンタイムが発生する可能性があります。",
            "en": "Running on a single instance can cause downtime during failures or maintenance.",
        },
        recommendation={
            "ja": "インスタンス数を増やすことを検討してください。インスタンス数を増やすことで追加のコストが発生する可能性があるため事前に確認することをお勧めします。",
            "en": "Consider increasing the instance count. More instances may incur additional cost, so check beforehand.",
        },
        priority=0,
        predicate=flag_not_set("Gt1CapacityCount"),
    ),
    Rule(
        name="NoV2StorageEnabled",
        issue={
            "ja": "汎用 v2 ストレージ アカウント を利用していない ",
            "en": "Not using a general-purpose v2 storage account",
        },
        comment={
            "ja": "ストレージ アカウントには主に2つのバージョンがあります。以前のバージョンのストレージ アカウントはバックアップの取得が出来ない等の機能制限があります。",
            "en": "Storage accounts come in two main versions. Older storage accounts have functional limits, such as not supporting backup.",
        },
        recommendation={
            "ja": "汎用 v2 ストレージ アカウントにアップグレードすることをご検討ください。汎用 v2 ストレージ アカウントはコストモデルが従来のストレージ アカウントと異なるため追加のコストが発生する可能性があります。次のドキュメント、ブログを参照してください。<br>"
                  + _link("https://docs.microsoft.com/ja-jp/azure/storage/common/storage-account-upgrade/") + "<br>"
                  + _link("https://jpazasms.github.io/blog/AzureSubscriptionManagement/20190226c/"),
            "en": "Consider upgrading to a general-purpose v2 storage account. Its cost model differs from older accounts and may incur additional cost. See the following documentation:<br>"
                  + _link("https://learn.microsoft.com/en-us/azure/storage/common/storage-account-upgrade"),
        },
        priority=2,
        predicate=flag_not_set("V2StorageEnabled"),
    ),
    Rule(
        name="NoRAStorageEnabled",
        issue={
            "ja": "読み取りアクセスストレージを利用していない",
            "en": "Read-access geo-redundant storage is not used",
        },
        comment={
            "ja": "読み取りアクセスストレージを利用していない場合、Microsoft によってフェールオーバーされるまでストレージ アカウントにアクセスができません。",
            "en": "Without read access to the secondary region, the storage account is unreachable until Microsoft performs a failover.",
        },
        recommendation={
            "ja": "読み取りアクセスを有効にすることをご検討ください。変更手順について以下のドキュメントをご参照ください。<br>"
                  + _link("https://docs.microsoft.com/ja-jp/azure/storage/common/redundancy-migration"),
            "en": "Consider enabling read access. See the following documentation for the procedure:<br>"
                  + _link("https://learn.microsoft.com/en-us/azure/storage/common/redundancy-migration"),
        },
        priority=2,
        predicate=flag_not_set("RAStorageEnabled"),
    ),
    Rule(
        name="NoAzVnetGwSku",
        issue={
            "ja": "仮想ネットワーク ゲートウェイでゾーン冗長の SKU を利用していない",
            "en": "Virtual network gateway is not using a zone-redundant SKU",
        },
        comment={
            "ja": "可用性ゾーンを使用していない場合ゲートウェイの障害やメンテナンスでネットワーク接続に影響が発生する可能性があります。",
            "en": "Without availability zones, gateway failures or maintenance can affect network connectivity.",
        },
        recommendation={
            "ja": "ゾーン冗長されたゲートウェイを利用することをご検討ください。<br>"
                  + _link("https://learn.microsoft.com/ja-jp/azure/vpn-gateway/about-zone-redundant-vnet-gateways"),
            "en": "Consider using a zone-redundant gateway.<br>"
                  + _link("https://learn.microsoft.com/en-us/azure/vpn-gateway/about-zone-redundant-vnet-gateways"),
        },
        priority=0,
        predicate=flag_not_set("AzVnetGwSkuCount"),
    ),
    Rule(
        name="NoSucceededState",
        issue={
            "ja": "リソースが正常に稼働していない可能性がある",
            "en": "Resource may not be running normally",
        },
        comment={
            "ja": "リソースが正常に稼働していない可能性があります。リソースの状態を確認してください。",
            "en": "The resource may not be running normally. Check the resource state.",
        },
        recommendation={
            "ja": "リソースが正常に稼働していない可能性があります。リソースの状態を確認してください。",
            "en": "The resource may not be running normally. Check the resource state.",
        },
        priority=0,
        predicate=flag_not_set("SucceededStateCount"),
    ),
    Rule(
        name="NoGt1Capacity",
        issue={
            "ja": "単一のインスタンスで稼働している可能性がある",
            "en": "Resource may be running on a single instance",
        },
        comment={
            "ja": "リソースが単一のインスタンスで稼働している可能性があります。",
            "en": "The resource may be running on a single instance.",
        },
        recommendation={
            "ja": "リソースのインスタンスを追加することをご検討ください。",
            "en": "Consider adding instances to the resource.",
        },
        priority=0,
        predicate=exactly_one_of("Gt1CapacityCount", "NACapacityCount"),
    ),
    Rule(
        name="NoRouteVnetGwVpnType",
        issue={
            "ja": "VPN の仮想ネットワーク ゲートウェイのタイプがルートベースの VPN ではない",
            "en": "VPN gateway type is not route-based",
        },
        comment={
            "ja": "現在の VPN ゲートウェイのタイプがルートベースの VPN ではない場合、より高度なルーティング設定や複数の VPN 接続の設定が制限される可能性があります。",
            "en": "If the VPN gateway is not route-based, advanced routing and multiple VPN connections may be restricted.",
        },
        recommendation={
            "ja": "VPN の仮想ネットワーク ゲートウェイのタイプをルートベースの VPN に変更することを検討してください。ルートベースの VPN に変更することで、より柔軟なルーティング設定や複数の VPN 接続をサポートできます。変更には追加のコストがかかる場合がありますので、事前に確認してください。",
            "en": "Consider changing the VPN gateway type to route-based, which supports more flexible routing and multiple VPN connections. The change may incur additional cost, so check beforehand.",
        },
        priority=0,
        predicate=flag_not_set("RouteVnetGwVpnTypeCount"),
    ),
    Rule(
        name="NoGen2VnetGw",
        issue={
            "ja": "仮想ネットワーク ゲートウェイが Gen2 ではない",
            "en": "Virtual network gateway is not Generation 2",
        },
        comment={
            "ja": "現在の仮想ネットワーク ゲートウェイが Gen2 ではない場合、パフォーマンスや機能面で制限がかかる可能性があります。",
            "en": "A gateway that is not Generation 2 may be limited in performance and features.",
        },
        recommendation={
            "ja": "仮想ネットワーク ゲートウェイを Gen2 にアップグレードすることを検討してください。Gen2 にアップグレードすることで、より高いパフォーマンスや機能を利用できます。アップグレードには追加のコストがかかる場合がありますので、事前に確認してください。<br>"
                  + _link("https://learn.microsoft.com/ja-jp/azure/vpn-gateway/vpn-gateway-about-vpngateways"),
            "en": "Consider upgrading the gateway to Generation 2 for higher performance and more features. The upgrade may incur additional cost, so check beforehand.<br>"
                  + _link("https://learn.microsoft.com/en-us/azure/vpn-gateway/vpn-gateway-about-vpngateways"),
        },
        priority=2,
        predicate=exactly_one_of("Gen2VnetGwCount", "NAGen2VnetGwCount"),
    ),
    Rule(
        name="NoActiveActiveVnetGw",
        issue={
            "ja": "仮想ネットワーク ゲートウェイがアクティブ/アクティブ構成ではない",
            "en": "Virtual network gateway is not active-active",
        },
        comment={
            "ja": "現在の仮想ネットワーク ゲートウェイがアクティブ/アクティブ構成ではない場合、冗長性が低く、障害発生時のリスクが高まる可能性があります。",
            "en": "A gateway that is not active-active has lower redundancy and higher risk during failures.",
        },
        recommendation={
            "ja": "仮想ネットワーク ゲートウェイをアクティブ/アクティブ構成に変更することを検討してください。アクティブ/アクティブ構成にすることで、冗長性が向上し、障害発生時のリスクが低減されます。変更には追加のコストがかかる場合がありますので、事前に確認してください。<br>"
                  + _link("https://learn.microsoft.com/ja-jp/azure/vpn-gateway/vpn-gateway-highlyavailable"),
            "en": "Consider changing the gateway to an active-active configuration to improve redundancy and reduce risk during failures. The change may incur additional cost, so check beforehand.<br>"
                  + _link("https://learn.microsoft.com/en-us/azure/vpn-gateway/vpn-gateway-highlyavailable"),
        },
        priority=0,
        predicate=exactly_one_of("ActiveActiveVnetGwCount", "NAActiveActiveVnetGwCount"),
    ),
]

RULES: Dict[str, Rule] = {rule.name: rule for rule in _RULE_LIST}

# --- Lookup and self-check -------------------------------------------------

def get_rule(name: str, rules: Optional[Mapping[str, Rule]] = None) -> Rule:
    """
    Return the rule called `name`, or raise UnknownRule.
    """
    catalog = RULES if rules is None else rules
    try:
        return catalog[name]
    except KeyError:
        raise UnknownRule(name) from None


def validate_catalog(rules: Mapping[str, Rule], patterns: Mapping[str, Iterable[str]],
                     languages: Iterable[str] = SUPPORTED_LANGUAGES) -> None:
    """
    Check the catalog and the type patterns before evaluation.

    - every rule name referenced by a pattern exists (UnknownRule otherwise)
    - every localized rule has text for each supported language
    - issue titles are unique per language, since reports are keyed by title
    """
    for pattern, names in patterns.items():
        for name in names:
            if name not in rules:
                raise UnknownRule(name)

    languages = list(languages)
    for rule in rules.values():
        for attr in ("issue", "comment", "recommendation"):
            text = getattr(rule, attr)
            if isinstance(text, str):
                continue
            missing = [lang for lang in languages if lang not in text]
            if missing:
                raise CatalogError(f"Rule {rule.name} has no {attr} text for: {', '.join(missing)}")

    for lang in languages:
        seen: Dict[str, str] = {}
        for rule in rules.values():
            title = rule.issue if isinstance(rule.issue, str) else rule.issue[lang]
            if title in seen:
                raise CatalogError(
                    f"Rules {seen[title]} and {rule.name} share the issue title {title!r} ({lang})"
                )
            seen[title] = rule.name
