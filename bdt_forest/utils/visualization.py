"""
学習モニタリングの保存・可視化ユーティリティモジュール

このモジュールは、BDT学習の各ラウンドの診断値（ブースト重み、誤分類率、
ノード数）と変数重要度を保存・可視化するためのユーティリティ関数を提供します。
"""

import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
import os
import json
from typing import Dict, List, Optional
import datetime
import logging

logger = logging.getLogger(__name__)


def create_results_directory(base_dir: str = "results") -> str:
    """
    実験結果を保存するディレクトリを作成

    Parameters:
    -----------
    base_dir : str, default="results"
        基本ディレクトリ名

    Returns:
    --------
    results_dir : str
        作成された結果ディレクトリのパス
    """
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    results_dir = os.path.join(base_dir, f"experiment_{timestamp}")

    os.makedirs(results_dir, exist_ok=True)
    os.makedirs(os.path.join(results_dir, "figures"), exist_ok=True)
    os.makedirs(os.path.join(results_dir, "weights"), exist_ok=True)

    return results_dir


def save_experiment_config(config: Dict, results_dir: str) -> None:
    """
    実験設定をJSONファイルに保存
    """
    with open(os.path.join(results_dir, "experiment_config.json"), 'w') as f:
        json.dump(config, f, indent=2)


def plot_boost_monitoring(monitor_frame: pd.DataFrame,
                          title: str = "BDT Boosting Monitor",
                          save_path: Optional[str] = None) -> None:
    """
    ブースト重みのヒストグラムと、木の番号に対する誤分類率をプロット

    Parameters:
    -----------
    monitor_frame : pd.DataFrame
        BDT.get_monitoring_frame() の出力
    title : str
        プロットのタイトル
    save_path : str, optional
        保存先のパス
    """
    fig, (ax_weight, ax_err) = plt.subplots(1, 2, figsize=(14, 5))

    # ブースト重み: 100 bins in [1, 100]
    ax_weight.hist(monitor_frame['boost_weight'], bins=100, range=(1, 100))
    ax_weight.set_xlabel('Boost weight')
    ax_weight.set_ylabel('Trees')
    ax_weight.set_title('AdaBoost weights')

    # 誤分類率（Baggingでは NaN）
    errors = monitor_frame.dropna(subset=['error_fraction'])
    ax_err.scatter(errors['i_tree'], errors['error_fraction'], s=10)
    ax_err.set_xlim(0, max(len(monitor_frame), 1))
    ax_err.set_ylim(0, 0.5)
    ax_err.set_xlabel('Tree number')
    ax_err.set_ylabel('Error fraction')
    ax_err.set_title('Error fraction vs tree number')
    ax_err.grid(True, linestyle='--', alpha=0.7)

    fig.suptitle(title)
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close(fig)


def plot_node_counts(monitor_frame: pd.DataFrame,
                     title: str = "Nodes per tree",
                     save_path: Optional[str] = None) -> None:
    """
    剪定前後のノード数を木ごとにプロット
    """
    plt.figure(figsize=(10, 6))
    plt.plot(monitor_frame['i_tree'], monitor_frame['n_nodes_before_pruning'], label='before pruning')
    plt.plot(monitor_frame['i_tree'], monitor_frame['n_nodes'], label='after pruning')
    plt.xlabel('Tree number')
    plt.ylabel('Nodes')
    plt.title(title)
    plt.legend()
    plt.grid(True, linestyle='--', alpha=0.7)

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close()


def plot_variable_importance(ranking: pd.DataFrame,
                             title: str = "Variable Importance",
                             save_path: Optional[str] = None) -> None:
    """
    変数重要度のランキングをプロット

    Parameters:
    -----------
    ranking : pd.DataFrame
        BDT.create_ranking() の出力（variable, importance 列）
    title : str
        プロットのタイトル
    save_path : str, optional
        保存先のパス
    """
    plt.figure(figsize=(10, max(3, 0.4 * len(ranking) + 1)))
    sns.barplot(data=ranking, x='importance', y='variable', color='steelblue')
    plt.title(title)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close()


def plot_performance_comparison(results: Dict, metrics: List[str],
                                title: str = "Boost Type Comparison",
                                save_path: Optional[str] = None) -> None:
    """
    モデル性能比較をヒートマップでプロット

    Parameters:
    -----------
    results : dict
        {model_name: {'evaluation': {metric: value}}}
    metrics : list of str
        比較する評価指標
    """
    data = {
        model_name: [model_results['evaluation'][metric] for metric in metrics]
        for model_name, model_results in results.items()
    }
    df = pd.DataFrame(data, index=metrics)

    plt.figure(figsize=(8, 6))
    sns.heatmap(df, annot=True, fmt=".4f", cmap="YlGnBu")
    plt.title(title)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')

    plt.close()


def write_histos_to_directory(model, results_dir: str, prefix: str = "BDT") -> Dict[str, str]:
    """
    学習済みBDTのモニタリング結果をディレクトリに書き出す

    Writes the per-round records (CSV and JSON), the monitoring plots and,
    when defined, the variable ranking.

    Parameters:
    -----------
    model : BDT
        学習済みモデル
    results_dir : str
        出力ディレクトリ
    prefix : str
        ファイル名の接頭辞

    Returns:
    --------
    paths : dict
        書き出したファイルのパス
    """
    os.makedirs(results_dir, exist_ok=True)
    paths = {}

    frame = model.get_monitoring_frame()
    paths['monitor_csv'] = os.path.join(results_dir, f"{prefix}_monitor.csv")
    frame.to_csv(paths['monitor_csv'], index=False)

    paths['monitor_json'] = os.path.join(results_dir, f"{prefix}_monitor.json")
    model.save_monitoring_to_json(paths['monitor_json'])

    paths['boost_plot'] = os.path.join(results_dir, f"{prefix}_boost_monitor.png")
    plot_boost_monitoring(frame, title=f"{prefix} boosting monitor", save_path=paths['boost_plot'])

    paths['node_plot'] = os.path.join(results_dir, f"{prefix}_nodes.png")
    plot_node_counts(frame, title=f"{prefix} nodes per tree", save_path=paths['node_plot'])

    try:
        ranking = model.create_ranking()
    except ValueError as e:
        logger.warning("Variable ranking not written: %s", e)
        return paths

    paths['ranking_csv'] = os.path.join(results_dir, f"{prefix}_ranking.csv")
    ranking.to_csv(paths['ranking_csv'])

    paths['importance_plot'] = os.path.join(results_dir, f"{prefix}_importance.png")
    plot_variable_importance(ranking, title=f"{prefix} variable importance", save_path=paths['importance_plot'])

    return paths
