"""
ブースティング方式比較実験モジュール

このモジュールは、AdaBoostとBaggingのBDT、および重み付き/単純平均の
集約方式の性能を比較するための実験スクリプトを提供します。
"""

import logging
import os
import time
import json
from typing import Dict

import numpy as np

from ..models.bdt_components import BDT
from ..data.synthetic import generate_signal_background_data
from ..utils.visualization import (
    create_results_directory,
    save_experiment_config,
    plot_performance_comparison,
    write_histos_to_directory
)

logger = logging.getLogger(__name__)

METRICS = ['accuracy', 'auc', 'mse']


def run_boost_type_comparison(X_train: np.ndarray,
                              y_train: np.ndarray,
                              X_test: np.ndarray,
                              y_test: np.ndarray,
                              n_trees: int = 50,
                              node_min_events: int = 50,
                              n_cuts: int = 20,
                              prune_strength: float = 5.0,
                              output_dir: str = "results") -> Dict:
    """
    AdaBoost / Bagging と集約方式の組み合わせを比較

    Parameters:
    -----------
    X_train, y_train : array-like
        訓練データ
    X_test, y_test : array-like
        テストデータ
    n_trees : int
        森の木の数
    node_min_events : int
        ノードの最小イベント数
    n_cuts : int
        各変数のカット数
    prune_strength : float
        剪定強度
    output_dir : str
        結果の出力ディレクトリ

    Returns:
    --------
    results : dict
        比較結果
    """
    weights_dir = os.path.join(output_dir, "weights")
    os.makedirs(weights_dir, exist_ok=True)

    common_params = {
        'n_trees': n_trees,
        'node_min_events': node_min_events,
        'n_cuts': n_cuts,
        'prune_strength': prune_strength
    }

    models = {
        'AdaBoost': BDT(boost_type='AdaBoost', use_weighted_trees=True, **common_params),
        'AdaBoost-unweighted': BDT(boost_type='AdaBoost', use_weighted_trees=False, **common_params),
        'Bagging': BDT(boost_type='Bagging', use_weighted_trees=False, use_yes_no_leaf=False, **common_params),
    }

    results = {}
    for model_name, model in models.items():
        logger.info("Evaluating %s", model_name)

        start_time = time.time()
        model.fit(X_train, y_train)
        train_time = time.time() - start_time

        start_time = time.time()
        model.predict(X_test)
        predict_time = time.time() - start_time

        evaluation = model.evaluate(X_test, y_test, metrics=METRICS)

        results[model_name] = {
            'params': model.get_params(),
            'train_time': train_time,
            'predict_time': predict_time,
            'evaluation': evaluation
        }

        print(f"\n{model_name}")
        print(f"  Train time: {train_time:.4f}s")
        print(f"  Predict time: {predict_time:.4f}s")
        for metric in METRICS:
            print(f"  {metric}: {evaluation[metric]:.6f}")

        write_histos_to_directory(model, os.path.join(output_dir, "monitoring"), prefix=model_name)
        model.save(os.path.join(weights_dir, f"{model_name}.weights.txt"))

    with open(os.path.join(output_dir, "boost_type_comparison.json"), 'w') as f:
        json.dump(results, f, indent=2)

    plot_performance_comparison(results, METRICS, save_path=os.path.join(output_dir, "boost_type_comparison.png"))

    return results


def run_all_experiments(output_dir: str = "results", random_state: int = 42) -> Dict:
    """
    すべての実験を実行
    """
    results_dir = create_results_directory(output_dir)
    config = {
        'n_events': 4000,
        'n_vars': 5,
        'n_informative': 2,
        'shift': 1.0,
        'random_state': random_state
    }
    save_experiment_config(config, results_dir)

    X_train, y_train, X_test, y_test = generate_signal_background_data(
        n_events=config['n_events'],
        n_vars=config['n_vars'],
        n_informative=config['n_informative'],
        shift=config['shift'],
        random_state=random_state
    )

    return run_boost_type_comparison(X_train, y_train, X_test, y_test, output_dir=results_dir)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    run_all_experiments()
