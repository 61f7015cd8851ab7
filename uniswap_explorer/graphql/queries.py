# uniswap_explorer/graphql/queries.py
"""Uniswap V2 GraphQLクエリを一元管理するモジュール"""

# ETH価格（USD建て）
ETH_PRICE_QUERY = """
query bundles {
  bundles(where: {id: "1"}) {
    ethPrice
  }
}
"""

# トークンのETH建て価格と総流動性
DAI_QUERY = """
query tokens($tokenAddress: Bytes!) {
  tokens(where: {id: $tokenAddress}) {
    derivedETH
    totalLiquidity
  }
}
"""

ALL_TOKENS_QUERY = """
query tokens {
  tokens(first: 50, skip: 3000, orderBy: symbol, orderDirection: asc) {
    id
    symbol
    name
  }
}
"""

ALL_PAIRS_QUERY = """
query pairs {
  pairs(first: 1000, orderBy: reserveUSD, orderDirection: desc) {
    id
    reserveUSD
    token0 {
      symbol
      name
    }
    token1 {
      symbol
      name
    }
  }
}
"""

UNISWAP_DAY_DATA_QUERY = """
query uniswapDayDatas {
  uniswapDayDatas {
    dailyVolumeUSD
    totalVolumeUSD
    totalLiquidityUSD
  }
}
"""

LIQUIDITY_POSITIONS_QUERY = """
query liquidityPositions($positionId: ID!) {
  liquidityPositions(where: {id: $positionId}) {
    liquidityTokenBalance
  }
}
"""

UNISWAP_FACTORY_QUERY = """
query uniswapFactories {
  uniswapFactories {
    pairCount
    totalVolumeUSD
    totalVolumeETH
    totalLiquidityUSD
    totalLiquidityETH
    txCount
  }
}
"""

# トークン名で1件取得するクエリ
TOKEN_BY_NAME_QUERY = """
query tokens($name: String!) {
  tokens(where: {name: $name}, first: 1) {
    symbol
    name
    totalSupply
    tradeVolume
    tradeVolumeUSD
    totalLiquidity
    txCount
  }
}
"""

# トークンシンボルで1件取得するクエリ
TOKEN_BY_SYMBOL_QUERY = """
query tokens($symbol: String!) {
  tokens(where: {symbol: $symbol}, first: 1) {
    symbol
    name
    totalSupply
    tradeVolume
    tradeVolumeUSD
    untrackedVolumeUSD
    txCount
  }
}
"""

# 両方のトークンアドレスでペアを取得
PAIR_BY_TOKENS_QUERY = """
query pairs($token0: String!, $token1: String!) {
  pairs(where: {token0: $token0, token1: $token1}) {
    id
    createdAtTimestamp
    volumeUSD
    token0 {
      symbol
      name
      totalSupply
      tradeVolumeUSD
      totalLiquidity
    }
    token1 {
      symbol
    }
    token0Price
    token1Price
    volumeToken0
    volumeToken1
    liquidityProviderCount
  }
}
"""

# ペアアドレスでペアを取得
PAIR_QUERY = """
query pair($pairAddress: ID!) {
  pair(id: $pairAddress) {
    token0 {
      id
      symbol
      name
      derivedETH
    }
    token1 {
      id
      symbol
      name
      derivedETH
    }
    reserve0
    reserve1
    reserveUSD
    trackedReserveETH
    token0Price
    token1Price
    volumeUSD
    txCount
  }
}
"""

# ペアの直近のスワップ（新しい順）
PAIR_SWAPS_QUERY = """
query swaps($pairAddress: String!, $limit: Int!) {
  swaps(first: $limit, orderBy: timestamp, orderDirection: desc, where: {pair: $pairAddress}) {
    timestamp
    pair {
      token0 {
        symbol
      }
      token1 {
        symbol
      }
    }
    sender
    amount0In
    amount0Out
    amount1In
    amount1Out
    amountUSD
    to
  }
}
"""

PAIR_DAY_DATA_QUERY = """
query pairDayDatas($pairAddress: Bytes!, $limit: Int!) {
  pairDayDatas(first: $limit, where: {pairAddress: $pairAddress}) {
    date
    token0 {
      symbol
    }
    token1 {
      symbol
    }
    reserveUSD
    dailyVolumeToken0
    dailyVolumeToken1
    dailyVolumeUSD
  }
}
"""
